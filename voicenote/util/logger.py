import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_configured = False


def setup_logging(console_verbosity=logging.INFO):
    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_verbosity)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    # Configure the root logger once for the whole process
    logging.basicConfig(level=console_verbosity, handlers=[console_handler])


def get_logger(name, console_verbosity=logging.INFO):
    global _configured
    if not _configured:
        setup_logging(console_verbosity)
        _configured = True
    return logging.getLogger(name)
