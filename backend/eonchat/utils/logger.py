"""Logging setup and Unicode-safe console output.

Usernames and message previews routinely carry emoji, which break the default
console encoding on Windows. Everything written through this module degrades
to ASCII replacement characters instead of raising.
"""
import logging
import sys
from typing import Any

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Configure stdout/stderr for UTF-8 on Windows
if sys.platform == 'win32':
    for stream in (sys.stdout, sys.stderr):
        if hasattr(stream, 'reconfigure'):
            try:
                stream.reconfigure(encoding='utf-8', errors='replace')
            except (OSError, ValueError):
                pass


def _to_ascii(value: str) -> str:
    return value.encode('ascii', errors='replace').decode('ascii')


class SafeStreamHandler(logging.StreamHandler):
    """Stream handler that never fails on characters the console cannot encode."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            try:
                self.stream.write(msg + self.terminator)
            except (UnicodeEncodeError, UnicodeDecodeError):
                self.stream.write(_to_ascii(msg) + self.terminator)
            self.flush()
        except Exception:
            self.handleError(record)


def setup_logging(level: str = "INFO") -> None:
    """Install the safe handler on the root logger once."""
    root = logging.getLogger()
    if any(isinstance(h, SafeStreamHandler) for h in root.handlers):
        root.setLevel(level.upper())
        return
    handler = SafeStreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level.upper())


def safe_print(*args, **kwargs):
    """
    Print that tolerates Unicode characters including emojis.
    Falls back to ASCII replacement when the console cannot encode them.
    """
    try:
        print(*args, **kwargs)
    except (UnicodeEncodeError, UnicodeDecodeError):
        safe_args = []
        for arg in args:
            if isinstance(arg, str):
                safe_args.append(_to_ascii(arg))
            elif isinstance(arg, dict):
                safe_args.append({
                    _to_ascii(k) if isinstance(k, str) else k: _to_ascii(v) if isinstance(v, str) else v
                    for k, v in arg.items()
                })
            else:
                safe_args.append(safe_repr(arg))
        print(*safe_args, **kwargs)


def safe_repr(obj: Any) -> str:
    """
    Representation that survives objects whose repr cannot be encoded.
    """
    try:
        return repr(obj)
    except (UnicodeEncodeError, UnicodeDecodeError):
        return _to_ascii(str(obj))
