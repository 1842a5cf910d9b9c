from pathlib import Path


class GeneratorError(Exception):
    pass


class EnvironmentConfigError(GeneratorError):
    def __init__(self, variable: str):
        self.variable = variable
        super().__init__(f"${variable} unset")


class ConfigurationError(GeneratorError):
    pass


class TargetMismatchError(GeneratorError):
    pass


class TemplateError(GeneratorError):
    pass


class ArtifactReadError(GeneratorError):
    path: Path

    def __init__(self, path: Path, reason: str):
        self.path = path
        super().__init__(f"cannot read {path}: {reason}")


class ArtifactWriteError(GeneratorError):
    path: Path

    def __init__(self, path: Path, reason: str):
        self.path = path
        super().__init__(f"cannot write {path}: {reason}")


class ExternalToolError(GeneratorError):
    pass
