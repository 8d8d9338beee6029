"""Console logging utilities for the emulator and its host.

Core instructions run inside traced JAX code and cannot print directly; they
report through ``jax.debug.callback`` into the module-level ``logger``.
"""

import sys
import time
from typing import Optional, TextIO


class ConsoleLogger:
    """Flexible console logger with level filtering and colored output."""

    level_order = {
        "DEBUG": 0,
        "INFO": 1,
        "WARNING": 2,
        "ERROR": 3,
        "CRITICAL": 4,
    }

    def __init__(
        self,
        name: str = "chipax",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
        stream: Optional[TextIO] = None,
    ):
        self.name = name
        self.log_level = log_level.upper()
        self.stream = stream
        self.use_colors = use_colors
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

        self.colors = {
            "DEBUG": "\033[36m",
            "INFO": "\033[32m",
            "WARNING": "\033[33m",
            "ERROR": "\033[31m",
            "CRITICAL": "\033[35m",
            "RESET": "\033[0m"
        }

    def set_level(self, log_level: str):
        """Change the minimum level that gets printed."""
        log_level = log_level.upper()
        if log_level not in self.level_order:
            raise ValueError(
                f"Unknown log level '{log_level}'. Available: {list(self.level_order)}"
            )
        self.log_level = log_level

    def _output(self) -> TextIO:
        # Resolved per call so redirected stdout (pytest capture) is honoured
        return self.stream if self.stream is not None else sys.stdout

    def _should_log(self, level: str) -> bool:
        """Check if message should be logged based on current log level."""
        return self.level_order.get(level.upper(), 1) >= self.level_order.get(
            self.log_level, 1
        )

    def _format_message(self, level: str, message: str) -> str:
        """Format log message with timestamp, level, and colors."""
        timestamp = (
            f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        )
        level_str = f"[{level:>8s}]"
        name_str = f"[{self.name}]"

        stream = self._output()
        if self.use_colors and hasattr(stream, "isatty") and stream.isatty():
            color = self.colors.get(level.upper(), "")
            reset = self.colors["RESET"]
            level_str = f"{color}{level_str}{reset}"

        return f"{timestamp}{level_str}{name_str} {message}"

    def log(self, level: str, message: str):
        """Log a message at the specified level."""
        if self._should_log(level):
            formatted = self._format_message(level, message)
            print(formatted, file=self._output(), flush=True)

    def debug(self, message: str):
        """Log debug message."""
        self.log("DEBUG", message)

    def info(self, message: str):
        """Log info message."""
        self.log("INFO", message)

    def warning(self, message: str):
        """Log warning message."""
        self.log("WARNING", message)

    def error(self, message: str):
        """Log error message."""
        self.log("ERROR", message)

    def critical(self, message: str):
        """Log critical message."""
        self.log("CRITICAL", message)


def format_registers(state) -> str:
    """One-line dump of PC, I, SP and V0-VF for diagnostics."""
    registers = " ".join(f"V{i:X}={int(v):02X}" for i, v in enumerate(state.V))
    return (
        f"PC={int(state.pc):03X} I={int(state.I):03X} "
        f"SP={int(state.stack.pointer)} {registers}"
    )


logger = ConsoleLogger()
