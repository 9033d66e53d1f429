"""Exception taxonomy shared by the orchestrators and the API/CLI surfaces.

Only request-validation and storage failures ever reach a caller.
ProviderError is raised by provider adapters and absorbed per topic by the
script and video orchestrators.
"""


class ScenescribeError(Exception):
    """Base class for all SceneScribe errors."""


class ProjectNotFound(ScenescribeError):
    """Unknown project id."""

    def __init__(self, project_id: str):
        super().__init__(f"Project {project_id} not found")
        self.project_id = project_id


class TopicNotFound(ScenescribeError):
    """Unknown topic id within an existing project."""

    def __init__(self, project_id: str, topic_id: str):
        super().__init__(f"Topic {topic_id} not found in project {project_id}")
        self.project_id = project_id
        self.topic_id = topic_id


class InvalidRequest(ScenescribeError):
    """Caller input that cannot be processed (400-class)."""


class InvalidInput(InvalidRequest):
    """Missing or unusable source input."""


class IngestError(InvalidRequest):
    """The source URL could not be fetched."""


class NoTopicsSelected(InvalidRequest):
    """The enabled (and optionally filtered) topic set is empty."""

    def __init__(self, message: str = "No topics selected"):
        super().__init__(message)


class ProviderError(ScenescribeError):
    """A text- or video-generation provider call failed."""


class PersistenceError(ScenescribeError):
    """The storage backend failed (500-class, not retried)."""
