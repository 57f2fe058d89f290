class BotError(Exception):
    """Base class for failures the bot converts into a fixed reply."""


class PreconditionFailure(BotError):
    pass


class InvalidCredential(BotError):
    pass


class ExtractionFailure(BotError):
    pass


class ExecutionFailure(BotError):
    pass


class QueryFailure(BotError):
    pass


class TransportFailure(BotError):
    pass
