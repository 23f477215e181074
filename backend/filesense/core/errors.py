"""
Error codes, localized messages and the exception taxonomy for analysis requests.
"""
from typing import Dict, Optional

from filesense.core.i18n import translate


# Error codes
class ErrorCodes:
    INVALID_INPUT = "INVALID_INPUT"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"
    EMPTY_RESPONSE = "EMPTY_RESPONSE"
    RESPONSE_PARSE_ERROR = "RESPONSE_PARSE_ERROR"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    FILE_EMPTY = "FILE_EMPTY"
    INVALID_FILE_TYPE = "INVALID_FILE_TYPE"
    FILE_PARSE_ERROR = "FILE_PARSE_ERROR"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    TIMEOUT = "TIMEOUT"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    ErrorCodes.INVALID_INPUT: {
        "Español": "Dataset vacío o inválido.",
        "English": "Empty or invalid dataset.",
        "Português": "Conjunto de dados vazio ou inválido.",
        "Français": "Jeu de données vide ou invalide.",
    },
    ErrorCodes.CONFIGURATION_ERROR: {
        "Español": "OPENROUTER_API_KEY no configurada.",
        "English": "OPENROUTER_API_KEY is not configured.",
        "Português": "OPENROUTER_API_KEY não configurada.",
        "Français": "OPENROUTER_API_KEY n'est pas configurée.",
    },
    ErrorCodes.UPSTREAM_ERROR: {
        "Español": "Error en OpenRouter",
        "English": "OpenRouter error",
        "Português": "Erro no OpenRouter",
        "Français": "Erreur OpenRouter",
    },
    ErrorCodes.UPSTREAM_TIMEOUT: {
        "Español": "El modelo tardó demasiado en responder.",
        "English": "The model took too long to respond.",
        "Português": "O modelo demorou demais para responder.",
        "Français": "Le modèle a mis trop de temps à répondre.",
    },
    ErrorCodes.EMPTY_RESPONSE: {
        "Español": "Respuesta vacía del modelo.",
        "English": "Empty response from the model.",
        "Português": "Resposta vazia do modelo.",
        "Français": "Réponse vide du modèle.",
    },
    ErrorCodes.RESPONSE_PARSE_ERROR: {
        "Español": "Error analizando datos.",
        "English": "Error analyzing data.",
        "Português": "Erro ao analisar os dados.",
        "Français": "Erreur lors de l'analyse des données.",
    },
    ErrorCodes.FILE_TOO_LARGE: {
        "Español": "El archivo es demasiado grande.",
        "English": "The file is too large.",
        "Português": "O arquivo é grande demais.",
        "Français": "Le fichier est trop volumineux.",
    },
    ErrorCodes.FILE_EMPTY: {
        "Español": "El archivo parece estar vacío.",
        "English": "The file appears to be empty.",
        "Português": "O arquivo parece estar vazio.",
        "Français": "Le fichier semble vide.",
    },
    ErrorCodes.INVALID_FILE_TYPE: {
        "Español": "Formato no soportado. Usa .XLSX, .XLS o .CSV.",
        "English": "Unsupported file format. Use .XLSX, .XLS or .CSV.",
        "Português": "Formato não suportado. Use .XLSX, .XLS ou .CSV.",
        "Français": "Format non supporté. Utilisez .XLSX, .XLS ou .CSV.",
    },
    ErrorCodes.FILE_PARSE_ERROR: {
        "Español": "No pudimos leer el archivo.",
        "English": "We could not read the file.",
        "Português": "Não foi possível ler o arquivo.",
        "Français": "Impossible de lire le fichier.",
    },
    ErrorCodes.RATE_LIMIT_EXCEEDED: {
        "Español": "Demasiadas solicitudes. Inténtalo de nuevo en un minuto.",
        "English": "Too many requests. Try again in a minute.",
        "Português": "Muitas solicitações. Tente novamente em um minuto.",
        "Français": "Trop de requêtes. Réessayez dans une minute.",
    },
    ErrorCodes.TIMEOUT: {
        "Español": "La solicitud tardó demasiado.",
        "English": "The request took too long.",
        "Português": "A solicitação demorou demais.",
        "Français": "La requête a pris trop de temps.",
    },
    ErrorCodes.UNKNOWN_ERROR: {
        "Español": "Ocurrió un error inesperado.",
        "English": "An unexpected error occurred.",
        "Português": "Ocorreu um erro inesperado.",
        "Français": "Une erreur inattendue s'est produite.",
    },
}


def get_error_message(error_code: str, language: Optional[str] = None) -> str:
    """
    Get the localized message for an error code.

    Unknown codes fall back to the UNKNOWN_ERROR message.
    """
    table = ERROR_MESSAGES.get(error_code, ERROR_MESSAGES[ErrorCodes.UNKNOWN_ERROR])
    return translate(table, language)


def get_error_response(error_code: str, language: Optional[str] = None, message: Optional[str] = None) -> Dict[str, str]:
    """Build the `{"error": ...}` body returned to callers."""
    return {"error": message or get_error_message(error_code, language)}


class AnalysisError(Exception):
    """Base class for failures surfaced to the caller as `{"error": message}`."""

    code = ErrorCodes.UNKNOWN_ERROR
    status_code = 500

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None, language: Optional[str] = None):
        self.language = language
        self.message = message or get_error_message(self.code, language)
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class InvalidInputError(AnalysisError):
    code = ErrorCodes.INVALID_INPUT
    status_code = 400


class ConfigurationError(AnalysisError):
    code = ErrorCodes.CONFIGURATION_ERROR
    status_code = 500


class UpstreamError(AnalysisError):
    """The provider answered with a non-success status or could not be reached."""
    code = ErrorCodes.UPSTREAM_ERROR
    status_code = 502


class UpstreamTimeoutError(UpstreamError):
    code = ErrorCodes.UPSTREAM_TIMEOUT
    status_code = 504


class EmptyResponseError(AnalysisError):
    code = ErrorCodes.EMPTY_RESPONSE
    status_code = 500


class ResponseParseError(AnalysisError):
    code = ErrorCodes.RESPONSE_PARSE_ERROR
    status_code = 500


class FileTooLargeError(AnalysisError):
    code = ErrorCodes.FILE_TOO_LARGE
    status_code = 413


class FileEmptyError(AnalysisError):
    code = ErrorCodes.FILE_EMPTY
    status_code = 400


class InvalidFileTypeError(AnalysisError):
    code = ErrorCodes.INVALID_FILE_TYPE
    status_code = 400


class FileParseError(AnalysisError):
    code = ErrorCodes.FILE_PARSE_ERROR
    status_code = 400
