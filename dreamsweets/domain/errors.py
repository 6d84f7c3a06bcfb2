class ConceptGenerationError(Exception):
    pass


class EmptyResponse(ConceptGenerationError):
    pass


class SchemaViolation(ConceptGenerationError):
    pass


class ImageGenerationError(Exception):
    pass


class NoCandidates(ImageGenerationError):
    pass


class NoImageData(ImageGenerationError):
    pass


class StoppedAbnormally(ImageGenerationError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Generation stopped: {reason}")
        self.reason = reason


class SafetyRejected(ImageGenerationError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Blocked by safety filter: {reason}")
        self.reason = reason


class SessionExpired(ImageGenerationError):
    pass
