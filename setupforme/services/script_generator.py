"""
Installation Script Generator

Generates the PowerShell script that installs every application a user has
registered. Each application gets its own try/catch block so one failed
install never stops the rest of the run.

All user-supplied values are embedded through quote_literal(); the only
user text that appears outside a literal is the flattened name in the
per-app comment line.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Protocol
from urllib.parse import unquote, urlparse
import logging
import posixpath
import re

from .quoting import comment_text, quote_literal

logger = logging.getLogger(__name__)

SCRIPT_TITLE = "SetupForMe - Generated Installation Script"
UNKNOWN_APP_NAME = "Unknown App"
DEFAULT_INSTALLER_NAME = "installer.exe"

# Characters Windows refuses in file names, plus control characters
_INVALID_FILENAME_RE = re.compile(r'[<>:"/\\|?*\x00-\x1f]')

# Exit codes that mean the app is installed: success, and success with a
# reboot required (3010) or already initiated (1641)
INSTALLER_SUCCESS_CODES = (0, 3010, 1641)
REBOOT_EXIT_CODES = (3010, 1641)
# winget also reports an app that is already present: no applicable upgrade
# (0x8A15002B) and package already installed (0x8A150061)
WINGET_SUCCESS_CODES = INSTALLER_SUCCESS_CODES + (-1978335189, -1978335135)


def _ps_array(codes) -> str:
    return "@(" + ", ".join(str(code) for code in codes) + ")"


def _exit_code_check(codes, program: str) -> List[str]:
    return [
        f"  if ({_ps_array(codes)} -notcontains $p.ExitCode) {{ throw \"{program} exited with code $($p.ExitCode)\" }}",
        f"  if ({_ps_array(REBOOT_EXIT_CODES)} -contains $p.ExitCode) {{ Write-Host 'Restart required to finish installing.' -ForegroundColor DarkYellow }}",
    ]


WINGET_HELPER = [
    "function Install-WingetApp {",
    "  param([string]$Id, [string]$Arguments)",
    "  $argList = @('install', '-e', '--id', $Id, '--accept-source-agreements', '--accept-package-agreements')",
    "  if ($Arguments -and $Arguments.Trim() -ne '') { $argList += $Arguments }",
    "  Write-Host ('winget ' + ($argList -join ' ')) -ForegroundColor Cyan",
    "  $p = Start-Process 'winget' -ArgumentList $argList -Wait -NoNewWindow -PassThru",
    *_exit_code_check(WINGET_SUCCESS_CODES, "winget"),
    "}",
]

DOWNLOAD_HELPER = [
    "function Install-FromUrl {",
    "  param([string]$Url, [string]$FileName, [string]$Arguments)",
    f"  if ([string]::IsNullOrWhiteSpace($FileName)) {{ $FileName = '{DEFAULT_INSTALLER_NAME}' }}",
    "  $dest = Join-Path $env:TEMP ('SetupForMe_' + [guid]::NewGuid().ToString() + '_' + $FileName)",
    "  Write-Host \"Downloading $Url to $dest\" -ForegroundColor DarkCyan",
    "  Invoke-WebRequest -Uri $Url -OutFile $dest -UseBasicParsing",
    "  $psi = New-Object System.Diagnostics.ProcessStartInfo",
    "  $psi.FileName = $dest",
    "  if ($Arguments -and $Arguments.Trim() -ne '') { $psi.Arguments = $Arguments }",
    "  $psi.UseShellExecute = $true",
    "  $p = [System.Diagnostics.Process]::Start($psi)",
    "  $p.WaitForExit()",
    *_exit_code_check(INSTALLER_SUCCESS_CODES, "Installer"),
    "}",
]


class AppLike(Protocol):
    """Anything carrying the fields of an application record."""
    name: Optional[str]
    package_id: Optional[str]
    download_url: Optional[str]
    install_args: Optional[str]


def installer_file_name(download_url: Optional[str]) -> str:
    """
    Derive the temp file name for a downloaded installer.

    Examples:
        "https://example.com/setup.exe" -> "setup.exe"
        "https://example.com/dl/My%20Tool.msi?x=1" -> "My Tool.msi"
        "https://example.com/" -> "installer.exe"
    """
    path = urlparse(download_url or "").path
    file_name = posixpath.basename(unquote(path))
    file_name = _INVALID_FILENAME_RE.sub("", file_name).strip(" .")
    return file_name or DEFAULT_INSTALLER_NAME


class InstallScriptGenerator:
    """Generates unattended installation scripts from application records."""

    @staticmethod
    def generate_app_block(app: AppLike, index: int) -> str:
        """
        Generate the fault-isolated install block for one application.

        Args:
            app: Application record (ORM row or schema object)
            index: 1-based position, used only in the comment line

        Returns:
            PowerShell block as a string (no trailing newline)
        """
        display_name = app.name or UNKNOWN_APP_NAME
        name = quote_literal(display_name)
        args = quote_literal(app.install_args)

        block = [
            f"# App {index}: {comment_text(display_name)}",
            f"Write-Host ('Installing ' + {name} + '...') -ForegroundColor Yellow",
            "try {",
        ]

        if app.package_id:
            block.append(f"  Install-WingetApp -Id {quote_literal(app.package_id)} -Arguments {args}")
        elif app.download_url:
            file_name = quote_literal(installer_file_name(app.download_url))
            block.append(
                f"  Install-FromUrl -Url {quote_literal(app.download_url)} -FileName {file_name} -Arguments {args}"
            )
        else:
            block.append("  Write-Host 'No installer info provided.' -ForegroundColor DarkYellow")

        block.extend([
            f"  Write-Host ('Finished: ' + {name}) -ForegroundColor Green",
            "} catch {",
            f"  Write-Host ('Failed: ' + {name} + ' - ' + $_.Exception.Message) -ForegroundColor Red",
            "}",
        ])

        return "\n".join(block)

    @staticmethod
    def generate_script(apps: Iterable[AppLike], generated_at: Optional[datetime] = None) -> str:
        """
        Generate the full installation script.

        Args:
            apps: Application records in the order they should be installed
            generated_at: Timestamp for the header (defaults to now)

        Returns:
            PowerShell script content as string
        """
        generated_at = generated_at or datetime.now()

        script_lines: List[str] = [
            f"# {SCRIPT_TITLE}",
            f"# Generated on: {generated_at.strftime('%Y-%m-%d %H:%M:%S')}",
            "",
            "$ErrorActionPreference = 'Stop'",
            "",
            *WINGET_HELPER,
            "",
            *DOWNLOAD_HELPER,
            "",
            "Write-Host 'Starting application installation...' -ForegroundColor Green",
            "",
        ]

        app_count = 0
        for app_count, app in enumerate(apps, start=1):
            script_lines.append(InstallScriptGenerator.generate_app_block(app, app_count))
            script_lines.append("")

        if app_count == 0:
            script_lines.append("Write-Host 'No applications to install.' -ForegroundColor Yellow")
        else:
            script_lines.append("Write-Host 'Installation complete!' -ForegroundColor Green")

        logger.debug(f"Generated installation script for {app_count} apps")
        return "\n".join(script_lines)
