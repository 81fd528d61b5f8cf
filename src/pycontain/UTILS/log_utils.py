# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Logging helpers for the pycontain package.
"""
import logging
import sys

LOGGER_NAME = "pycontain"

logger = logging.getLogger(LOGGER_NAME)


def get_logger(name: str) -> logging.Logger:
    """
    Returns a child of the package logger for a module.

    :param name: Usually ``__name__`` of the calling module.
    """
    if name == LOGGER_NAME or name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logger.getChild(name)


def setup_logging(level: int = logging.INFO) -> None:
    """
    Installs a single stdout handler on the package logger.

    :param level: Logging level (default: INFO).
    """
    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("[pycontain] [%(levelname)s] %(message)s"))

    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
