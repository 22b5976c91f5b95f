class SchedulingError(Exception):
    """Base class for every error raised by the scheduling core."""

    pass


class ValidationError(SchedulingError, ValueError):
    """Raised when a task list, constraint or setting is malformed."""

    pass


class CycleDetectedError(SchedulingError):
    """Raised when the task dependency graph contains a cycle."""

    def __init__(self, cycle):
        self.cycle = list(cycle)
        path = " -> ".join(str(node) for node in self.cycle)
        super().__init__(f"Cyclic dependency detected: {path}")


class UnknownPhaseError(SchedulingError, KeyError):
    """Raised by strict milestone generation for a phase with no milestone list."""

    def __init__(self, phase):
        self.phase = phase
        super().__init__(phase)

    def __str__(self):
        return f"Unknown project phase: {self.phase!r}"


class ConfigError(ValidationError):
    """Raised when a Gantt/calendar configuration update is invalid."""

    pass
