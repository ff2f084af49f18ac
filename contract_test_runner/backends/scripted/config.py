"""Configuration for the scripted backend."""

from pydantic import BaseModel


class ScriptedBackendConfig(BaseModel):
    """Configuration for the scripted backend."""

    # Relative paths are resolved against the project root
    program_file: str = "tests.program.yaml"
