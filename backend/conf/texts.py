"""User-facing texts used throughout the application, per locale."""

from typing import Any, Dict

# English texts
EN_TEXTS: Dict[str, Any] = {
    "texts": {
        "extensions": {
            "files": {
                "errorNotSupportedFileTypeImage": (
                    "Images cannot be uploaded as documents. "
                    "Please attach them to the chat message instead."
                ),
                "errorOutdatedFileType": (
                    "This file format is outdated. "
                    "Please convert the file to {format} and upload it again."
                ),
                "errorNotSupportedFileType": "This file type is not supported.",
                "errorNotAllowedFileType": (
                    "This file type is not allowed for this bucket."
                ),
                "errorFileTooLarge": "The file is too large.",
                "errorUploadingFileDamaged": (
                    "The file could not be read. It might be damaged."
                ),
                "errorUploadingREISConfiguration": (
                    "The retrieval service is not configured correctly."
                ),
                "errorUploadingFile": "The file could not be uploaded.",
            },
        },
        "chat": {
            "errorGenerating": "The assistant could not generate a response.",
            "errorNoModel": "The assistant has no model configured.",
        },
    },
}

# German texts
DE_TEXTS: Dict[str, Any] = {
    "texts": {
        "extensions": {
            "files": {
                "errorNotSupportedFileTypeImage": (
                    "Bilder können nicht als Dokumente hochgeladen werden. "
                    "Bitte hängen Sie sie stattdessen an die Chatnachricht an."
                ),
                "errorOutdatedFileType": (
                    "Dieses Dateiformat ist veraltet. "
                    "Bitte konvertieren Sie die Datei nach {format} und laden Sie sie erneut hoch."
                ),
                "errorNotSupportedFileType": "Dieser Dateityp wird nicht unterstützt.",
                "errorNotAllowedFileType": (
                    "Dieser Dateityp ist für diesen Bucket nicht erlaubt."
                ),
                "errorFileTooLarge": "Die Datei ist zu groß.",
                "errorUploadingFileDamaged": (
                    "Die Datei konnte nicht gelesen werden. Möglicherweise ist sie beschädigt."
                ),
                "errorUploadingREISConfiguration": (
                    "Der Retrieval-Dienst ist nicht korrekt konfiguriert."
                ),
                "errorUploadingFile": "Die Datei konnte nicht hochgeladen werden.",
            },
        },
        "chat": {
            "errorGenerating": "Der Assistent konnte keine Antwort erzeugen.",
            "errorNoModel": "Für den Assistenten ist kein Modell konfiguriert.",
        },
    },
}

TEXTS: Dict[str, Dict[str, Any]] = {
    "en": EN_TEXTS,
    "de": DE_TEXTS,
}
