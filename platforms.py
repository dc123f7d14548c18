"""Per-platform OS automation adapters.

Each adapter exposes the same small surface (focused-window query, clipboard
read/write, paste keystroke, raw keystroke synthesis). ``detect_automation``
picks one at startup based on the platform and the tools found on PATH.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import sys
from pathlib import Path
from typing import Callable, Optional

from errors import PERMISSION_DENIED, AutomationError
from models import FocusedWindow

try:
    import pyperclip
except Exception:  # pragma: no cover
    pyperclip = None  # type: ignore

try:
    from pynput.keyboard import Controller, Key
except Exception:  # pragma: no cover
    Controller = None  # type: ignore
    Key = None  # type: ignore

logger = logging.getLogger(__name__)

FIELD_SEPARATOR = "|||"
COMMAND_TIMEOUT_S = 5.0

MACOS_FOCUSED_WINDOW_SCRIPT = """
tell application "System Events"
  set frontApp to first application process whose frontmost is true
  set appName to name of frontApp
  set bundleID to bundle identifier of frontApp
  tell frontApp
    if exists window 1 then
      set windowTitle to name of window 1
    else
      set windowTitle to ""
    end if
  end tell
  return appName & "|||" & bundleID & "|||" & windowTitle
end tell
"""

WINDOWS_FOCUSED_WINDOW_SCRIPT = r"""
Add-Type @"
  using System;
  using System.Runtime.InteropServices;
  using System.Text;
  public class WindowAPI {
    [DllImport("user32.dll")]
    public static extern IntPtr GetForegroundWindow();
    [DllImport("user32.dll")]
    public static extern int GetWindowText(IntPtr hWnd, StringBuilder text, int count);
    [DllImport("user32.dll", SetLastError = true)]
    public static extern uint GetWindowThreadProcessId(IntPtr hWnd, out uint lpdwProcessId);
  }
"@
$hwnd = [WindowAPI]::GetForegroundWindow()
$title = New-Object System.Text.StringBuilder 512
[void][WindowAPI]::GetWindowText($hwnd, $title, $title.Capacity)
$processId = 0
[void][WindowAPI]::GetWindowThreadProcessId($hwnd, [ref]$processId)
$process = Get-Process -Id $processId -ErrorAction SilentlyContinue
if ($process) {
  $desc = $process.MainModule.FileVersionInfo.FileDescription
  Write-Output "$($process.ProcessName)|||$desc|||$($title.ToString())"
}
"""

# Characters SendKeys treats as modifiers or grouping; each must be braced.
_SENDKEYS_SPECIAL = set("+^%~(){}[]")


def escape_applescript(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def escape_sendkeys(text: str) -> str:
    out = []
    for ch in text:
        if ch in _SENDKEYS_SPECIAL:
            out.append("{" + ch + "}")
        elif ch == "\n":
            out.append("{ENTER}")
        elif ch == "\t":
            out.append("{TAB}")
        elif ch == "\r":
            continue
        else:
            out.append(ch)
    return "".join(out)


def escape_powershell_literal(text: str) -> str:
    return text.replace("'", "''")


def build_applescript_keystrokes(text: str) -> str:
    """Build a System Events script typing ``text`` line by line."""
    statements = []
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    for index, line in enumerate(lines):
        if index:
            statements.append("key code 36")
        parts = line.split("\t")
        for part_index, part in enumerate(parts):
            if part_index:
                statements.append("keystroke tab")
            if part:
                statements.append(f'keystroke "{escape_applescript(part)}"')
    body = "\n  ".join(statements)
    return f'tell application "System Events"\n  {body}\nend tell'


class BaseAutomation:
    """Clipboard through pyperclip; subclasses add paste/typing/window query."""

    name = "base"

    async def query_focused_window(self) -> Optional[FocusedWindow]:
        return None

    def supports_clipboard(self) -> bool:
        return pyperclip is not None

    async def get_clipboard(self) -> str:
        if pyperclip is None:
            raise AutomationError("pyperclip is not installed")
        try:
            return await asyncio.to_thread(pyperclip.paste)
        except Exception as exc:
            raise AutomationError(f"clipboard read failed: {exc}") from exc

    async def set_clipboard(self, text: str) -> None:
        if pyperclip is None:
            raise AutomationError("pyperclip is not installed")
        try:
            await asyncio.to_thread(pyperclip.copy, text)
        except Exception as exc:
            raise AutomationError(f"clipboard write failed: {exc}") from exc

    async def send_paste(self) -> None:
        raise AutomationError(f"{self.name}: paste is not supported")

    async def send_keystrokes(self, text: str) -> None:
        raise AutomationError(f"{self.name}: keystrokes are not supported")

    async def _run(self, *args: str) -> str:
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise AutomationError(f"{args[0]} not found") from exc
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), COMMAND_TIMEOUT_S)
        except asyncio.TimeoutError as exc:
            proc.kill()
            raise AutomationError(f"{args[0]} timed out") from exc
        if proc.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            code = PERMISSION_DENIED if "not allowed" in message.lower() else None
            raise AutomationError(f"{args[0]} failed ({proc.returncode}): {message}", code=code)
        return stdout.decode("utf-8", errors="replace")


class MacOSAutomation(BaseAutomation):
    name = "macos"

    async def query_focused_window(self) -> Optional[FocusedWindow]:
        output = await self._run("osascript", "-e", MACOS_FOCUSED_WINDOW_SCRIPT)
        parts = output.strip().split(FIELD_SEPARATOR)
        if len(parts) < 3 or not parts[0]:
            logger.debug(f"Unexpected AppleScript output: {output!r}")
            return None
        app_name, bundle_id, title = parts[0], parts[1], FIELD_SEPARATOR.join(parts[2:])
        return FocusedWindow(
            app_name=app_name,
            process_name=app_name.lower(),
            bundle_id=bundle_id if bundle_id and bundle_id != "missing value" else None,
            window_title=title,
        )

    async def send_paste(self) -> None:
        await self._run(
            "osascript", "-e",
            'tell application "System Events" to keystroke "v" using command down',
        )

    async def send_keystrokes(self, text: str) -> None:
        await self._run("osascript", "-e", build_applescript_keystrokes(text))


class WindowsAutomation(BaseAutomation):
    name = "windows"

    def __init__(self, powershell: str = "powershell") -> None:
        self._powershell = powershell

    async def query_focused_window(self) -> Optional[FocusedWindow]:
        output = await self._powershell_run(WINDOWS_FOCUSED_WINDOW_SCRIPT)
        parts = output.strip().split(FIELD_SEPARATOR)
        if len(parts) < 3 or not parts[0]:
            return None
        process_name, description, title = parts[0], parts[1], FIELD_SEPARATOR.join(parts[2:])
        return FocusedWindow(
            app_name=description or process_name,
            process_name=process_name.lower(),
            window_title=title,
        )

    async def send_paste(self) -> None:
        await self._send_keys("^v")

    async def send_keystrokes(self, text: str) -> None:
        await self._send_keys(escape_sendkeys(text))

    async def _send_keys(self, keys: str) -> None:
        await self._powershell_run(
            "Add-Type -AssemblyName System.Windows.Forms; "
            f"[System.Windows.Forms.SendKeys]::SendWait('{escape_powershell_literal(keys)}')"
        )

    async def _powershell_run(self, script: str) -> str:
        return await self._run(self._powershell, "-NoProfile", "-NonInteractive", "-Command", script)


class LinuxX11Automation(BaseAutomation):
    name = "linux-x11"

    async def query_focused_window(self) -> Optional[FocusedWindow]:
        window_id = (await self._run("xdotool", "getactivewindow")).strip()
        if not window_id:
            return None
        title = (await self._run("xdotool", "getwindowname", window_id)).strip()
        process_name = ""
        try:
            pid = (await self._run("xdotool", "getwindowpid", window_id)).strip()
            process_name = Path(f"/proc/{pid}/comm").read_text(encoding="utf-8").strip()
        except (AutomationError, OSError) as exc:
            logger.debug(f"Could not resolve window pid: {exc}")
        app_name = await self._wm_class(window_id) or process_name
        if not app_name:
            return None
        return FocusedWindow(app_name=app_name, process_name=process_name.lower(), window_title=title)

    async def _wm_class(self, window_id: str) -> str:
        # WM_CLASS(STRING) = "gnome-terminal-server", "Gnome-terminal"
        try:
            output = await self._run("xprop", "-id", window_id, "WM_CLASS")
        except AutomationError:
            return ""
        values = [part.strip().strip('"') for part in output.split("=", 1)[-1].split(",")]
        return values[-1] if values and values[-1] else ""

    async def send_paste(self) -> None:
        await self._run("xdotool", "key", "--clearmodifiers", "ctrl+v")

    async def send_keystrokes(self, text: str) -> None:
        await self._run("xdotool", "type", "--clearmodifiers", "--delay", "10", "--", text)


class LinuxWaylandAutomation(BaseAutomation):
    name = "linux-wayland"

    async def send_paste(self) -> None:
        await self._run("wtype", "-M", "ctrl", "v", "-m", "ctrl")

    async def send_keystrokes(self, text: str) -> None:
        await self._run("wtype", "--", text)


class PynputAutomation(BaseAutomation):
    """Generic fallback when no scripting tool is available."""

    name = "pynput"

    def __init__(self, paste_modifier: str = "ctrl") -> None:
        self._paste_modifier = paste_modifier

    async def send_paste(self) -> None:
        if Controller is None or Key is None:
            raise AutomationError("pynput is not installed")
        await asyncio.to_thread(self._press_paste)

    async def send_keystrokes(self, text: str) -> None:
        if Controller is None:
            raise AutomationError("pynput is not installed")
        await asyncio.to_thread(Controller().type, text)

    def _press_paste(self) -> None:
        keyboard = Controller()
        modifier = getattr(Key, self._paste_modifier)
        keyboard.press(modifier)
        keyboard.press("v")
        keyboard.release("v")
        keyboard.release(modifier)


def detect_automation(
    platform: str | None = None,
    which: Callable[[str], Optional[str]] = shutil.which,
    environ: dict | None = None,
) -> BaseAutomation:
    """Pick the automation adapter for this machine."""
    platform = platform or sys.platform
    environ = os.environ if environ is None else environ

    if platform == "darwin" and which("osascript"):
        adapter: BaseAutomation = MacOSAutomation()
    elif platform.startswith("win"):
        shell = which("powershell") or which("pwsh")
        adapter = WindowsAutomation(shell) if shell else PynputAutomation("ctrl")
    elif environ.get("WAYLAND_DISPLAY") and which("wtype"):
        adapter = LinuxWaylandAutomation()
    elif which("xdotool"):
        adapter = LinuxX11Automation()
    else:
        adapter = PynputAutomation("cmd" if platform == "darwin" else "ctrl")
    logger.info(f"Using {adapter.name} automation for platform {platform}")
    return adapter


def setup_instructions(platform: str | None = None) -> str:
    platform = platform or sys.platform
    if platform == "darwin":
        return "macOS: grant Accessibility permission to this app in System Settings > Privacy & Security."
    if platform.startswith("win"):
        return "Windows: no extra setup. Some elevated applications only accept input from elevated processes."
    return "Linux: install xclip (or wl-clipboard) and xdotool (or wtype on Wayland)."
