"""
Custom exception hierarchy for clearer error handling.
Loader, builder and adapter raise these; main.py handles them once at the top.
"""
class CflpError(Exception):
    """Base class for facility-location errors."""

class ConfigError(CflpError):
    pass

class DataLoadError(CflpError):
    """Base class for problems with the input tables."""

class MissingFileError(DataLoadError):
    pass

class MalformedInputError(DataLoadError):
    pass

class InvalidParameterError(CflpError):
    pass

class SolverConstructionError(CflpError):
    pass

class SolveError(CflpError):
    pass

class ReportWriteError(CflpError):
    pass
