import os
import time
import traceback

"""
MacroLog

Shared diagnostics for the activity macros.

- Phase-tagged system messages ([RUN], [TOOL], [TARGET], ...).
- Rolling in-memory buffer that can be exported to a text file.
- Optional best-effort timestamped file log next to the script.
"""

INFO_HUE = 88
WARN_HUE = 53
ERROR_HUE = 33
DEBUG_HUE = 1153
MAX_LINES = 400
PHASE_HUES = {
    "RUN": INFO_HUE,
    "TOOL": 68,
    "TARGET": 1153,
    "CONFIG": 90,
    "GUMP": 52,
}


def _timestamp():
    try:
        return time.strftime("%Y-%m-%d %H:%M:%S")
    except Exception:
        return "unknown-time"


def script_dir(file_path=None):
    # Directory of the running script, or the cwd when __file__ is unknown.
    if file_path:
        try:
            return os.path.dirname(os.path.abspath(file_path))
        except Exception:
            pass
    return os.getcwd()


class MacroLog:
    """Phase-tagged diagnostics routed to the client and a rolling buffer.

    Attributes:
        name: Script name used as the message prefix.
        debug_enabled: Show debug lines in the client when True.
        log_path: Optional file receiving timestamped copies of every line.
        lines: Rolling buffer of the most recent lines.
    """

    def __init__(self, api, name, debug_enabled=False, log_path=None, max_lines=MAX_LINES):
        self.api = api
        self.name = name
        self.debug_enabled = bool(debug_enabled)
        self.log_path = log_path
        self.max_lines = int(max_lines)
        self.lines = []

    def _append(self, line):
        self.lines.append(line)
        if len(self.lines) > self.max_lines:
            self.lines = self.lines[-self.max_lines:]
        if not self.log_path:
            return
        try:
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(f"[{_timestamp()}] {line}\n")
        except Exception:
            pass

    def emit(self, msg, phase="RUN", hue=None, debug_only=False):
        p = str(phase or "RUN").upper()
        line = f"[{self.name}][{p}] {msg}"
        self._append(line)
        if debug_only and not self.debug_enabled:
            return
        effective_hue = int(hue if hue is not None else PHASE_HUES.get(p, INFO_HUE))
        try:
            self.api.SysMsg(line, effective_hue)
        except Exception:
            pass

    def info(self, msg, phase="RUN"):
        self.emit(msg, phase=phase)

    def warn(self, msg, phase="RUN"):
        self.emit(msg, phase=phase, hue=WARN_HUE)

    def error(self, msg, phase="RUN"):
        self.emit(msg, phase=phase, hue=ERROR_HUE)

    def debug(self, msg, phase="RUN"):
        self.emit(msg, phase=phase, hue=DEBUG_HUE, debug_only=True)

    def text(self):
        return "\n".join(self.lines)

    def export(self, path):
        # Write the buffer to disk; returns False when the write fails.
        try:
            folder = os.path.dirname(path)
            if folder:
                os.makedirs(folder, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(self.text())
        except Exception:
            self.warn(f"Failed to export log to {path}.")
            return False
        self.info(f"Saved log: {os.path.basename(path)}")
        return True


def report_startup_exception(api, script_name, startup_step, ex, log_dir=None):
    """Report a launch failure so the script manager does not fail silently.

    Args:
        api: Host API object.
        script_name: Name shown in the message prefix.
        startup_step: Human-readable step that failed.
        ex: Exception raised by the failed step.
        log_dir: Folder for the startup error log, cwd when None.

    Returns:
        str: Path of the startup error log (written best-effort).
    """
    step_text = str(startup_step or "unknown startup step")
    err_text = str(ex) if ex is not None else "unknown error"
    try:
        api.SysMsg(f"[{script_name}][STARTUP] Failed at: {step_text}", ERROR_HUE)
        api.SysMsg(f"[{script_name}][STARTUP] {err_text}", ERROR_HUE)
    except Exception:
        pass

    try:
        tb_text = traceback.format_exc()
    except Exception:
        tb_text = "traceback unavailable"

    path = os.path.join(log_dir or os.getcwd(), f"{script_name}StartupErrors.txt")
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(f"[{_timestamp()}] {step_text}: {err_text}\n{tb_text}\n")
    except Exception:
        pass
    return path
