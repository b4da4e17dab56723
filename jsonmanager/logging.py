import logging

LOGGER_NAME = "jsonmanager"

class OperationFormatter(logging.Formatter):
    """Colors the level name of each record on terminals."""

    RESET = "\x1b[0m"
    COLORS = {
        logging.DEBUG: "\x1b[38;20m",
        logging.INFO: "\x1b[35;20m",
        logging.WARNING: "\x1b[33;20m",
        logging.ERROR: "\x1b[31;20m",
        logging.CRITICAL: "\x1b[31;1m"
    }

    def format(self, record):
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{self.COLORS.get(record.levelno, '')}{record.levelname:<8}{self.RESET}"
        return super().format(colored)

def manager_logger(operation: str):
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.hasHandlers():
        logger.setLevel(logging.INFO)
        handler = logging.StreamHandler()
        handler.setFormatter(OperationFormatter('%(asctime)s %(levelname)s - %(operation)-20s: %(message)s'))
        logger.addHandler(handler)
    return logging.LoggerAdapter(logger, extra={"operation": operation})
