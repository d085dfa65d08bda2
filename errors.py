class ModerationError(Exception):
    pass


class ConfigurationError(ModerationError):
    pass


class InvalidContentEventError(ModerationError):
    pass


class AssessmentError(ModerationError):
    pass


class EnforcementError(ModerationError):
    pass


class ModerationRecordNotFoundError(ModerationError):
    pass


class QueueEntryNotFoundError(ModerationError):
    pass


class QueueEntryStateError(ModerationError):
    pass


class ReportNotFoundError(ModerationError):
    pass


class AppealNotFoundError(ModerationError):
    pass


class HistoryNotFoundError(ModerationError):
    pass
