"""Application services for the ship CLI.

Services coordinate the version resolver (versioning/) and the build/upload
pipeline (pipeline/) for one project.
"""

from ship.services.release import ReleaseService, VersionPlan

__all__ = [
    "ReleaseService",
    "VersionPlan",
]
