from abc import ABC, abstractmethod


class BaseOcrEngine(ABC):
    """Contract for all OCR adapters."""

    @abstractmethod
    def image_to_text(self, image_bytes: bytes) -> str:
        """Return the raw text recognised in an image.

        Raises:
            OcrEngineError: if the engine cannot process the image.
        """
