from diffreduce.infra.logging.console import ConsoleLogger
from diffreduce.infra.logging.logfire import LogfireLogger, configure_logfire

__all__ = ["ConsoleLogger", "LogfireLogger", "configure_logfire"]
