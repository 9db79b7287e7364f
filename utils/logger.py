#!/usr/bin/env python3
import os
import sys
import logging


CALC = 25
OK = 22
logging.addLevelName(CALC, "CALC")
logging.addLevelName(OK, "OK")


class ColorFormatter(logging.Formatter):
    grey = "\x1b[38;20m"
    green = "\x1b[32;20m"
    cyan = "\x1b[36;20m"
    yellow = "\x1b[33;20m"
    red = "\x1b[31;20m"
    bold_red = "\x1b[31;1m"
    reset = "\x1b[0m"
    fmt = "%(levelname)s: %(message)s"

    COLORS = {
        logging.DEBUG: grey,
        logging.INFO: grey,
        OK: green,
        CALC: cyan,
        logging.WARNING: yellow,
        logging.ERROR: red,
        logging.CRITICAL: bold_red,
    }

    def __init__(self, use_color=True):
        super().__init__(self.fmt)
        self.use_color = use_color

    def format(self, record):
        message = super().format(record)
        if not self.use_color:
            return message
        return f"{self.COLORS.get(record.levelno, self.grey)}{message}{self.reset}"


class TokenLogger(logging.Logger):
    def calc(self, msg, *args, **kwargs):
        if self.isEnabledFor(CALC):
            self._log(CALC, msg, args, **kwargs)

    def ok(self, msg, *args, **kwargs):
        if self.isEnabledFor(OK):
            self._log(OK, msg, args, **kwargs)


def get_logger(name="token-lists"):
    logging.setLoggerClass(TokenLogger)
    log = logging.getLogger(name)
    logging.setLoggerClass(logging.Logger)
    if not log.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ColorFormatter(use_color=sys.stderr.isatty()))
        log.addHandler(handler)
        log.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
    return log


logger = get_logger()
