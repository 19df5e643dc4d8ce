"""Best-effort desktop notification after the hosts file is written.

Windows gets a toast through PowerShell and the WinRT notification API;
elsewhere ``notify-send`` is used when installed. Without either, the
summary is only logged.
"""

from __future__ import annotations

import os

from loguru import logger

from .util import CmdError, is_windows, run_cmd, which

log = logger

SUMMARY = 'Wrote to hosts file'
TIMEOUT_MS = 5000
POWERSHELL_APP_ID = (
    '{1AC14E77-02E7-4E5D-B744-2EB1AE5198B7}'
    '\\WindowsPowerShell\\v1.0\\powershell.exe'
)

# Title and body arrive through the environment, never inside the script.
TOAST_SCRIPT = """\
[Windows.UI.Notifications.ToastNotificationManager, Windows.UI.Notifications, ContentType = WindowsRuntime] | Out-Null
$template = [Windows.UI.Notifications.ToastTemplateType]::ToastText02
$xml = [Windows.UI.Notifications.ToastNotificationManager]::GetTemplateContent($template)
$text = $xml.GetElementsByTagName('text')
$text.Item(0).AppendChild($xml.CreateTextNode($env:WSLHOST_TOAST_TITLE)) | Out-Null
$text.Item(1).AppendChild($xml.CreateTextNode($env:WSLHOST_TOAST_BODY)) | Out-Null
$toast = [Windows.UI.Notifications.ToastNotification]::new($xml)
[Windows.UI.Notifications.ToastNotificationManager]::CreateToastNotifier($env:WSLHOST_TOAST_APP).Show($toast)
"""


def notification_body(address: str, aliases: list[str]) -> str:
    text = '\n'.join(f'{address} {name}' for name in aliases)
    return f'Applied the following domains to the hosts file.\n\n{text}'


def _notify_cmd(body: str) -> tuple[list[str], dict[str, str] | None] | None:
    if is_windows():
        exe = which('powershell.exe') or which('powershell')
        if exe is None:
            return None
        env = dict(os.environ)
        env['WSLHOST_TOAST_TITLE'] = SUMMARY
        env['WSLHOST_TOAST_BODY'] = body
        env['WSLHOST_TOAST_APP'] = POWERSHELL_APP_ID
        cmd = [exe, '-NoProfile', '-NonInteractive', '-Command', TOAST_SCRIPT]
        return cmd, env
    exe = which('notify-send')
    if exe is None:
        return None
    return [exe, '-t', str(TIMEOUT_MS), SUMMARY, body], None


def notify(address: str, aliases: list[str]) -> bool:
    """Show a notification; returns False when none could be shown."""
    body = notification_body(address, aliases)
    found = _notify_cmd(body)
    if found is None:
        log.info('{}: {}', SUMMARY, body.replace('\n', ' | '))
        return False
    cmd, env = found
    try:
        run_cmd(cmd, check=True, env=env)
    except (OSError, CmdError) as ex:
        log.warning('Notification failed: {}', ex)
        return False
    return True
