"""
ICMP echo through the system ``ping`` command.

Sending raw ICMP needs elevated privileges, so a single echo request is
delegated to the platform's ping binary, run as an async subprocess, and
its round-trip time is parsed from the output.

Contract of ``ping_once``:
  - Reply received: returns the RTT in milliseconds (float)
  - No reply / timeout / unparseable output: returns None
  - ping binary missing or not executable: raises OSError
"""

import asyncio
import math
import platform
import re
from typing import Optional

from .utils.logging import get_logger

log = get_logger(__name__)

# "time=12.3 ms" (Linux/macOS), "time=12ms" / "time<1ms" (Windows)
_PING_TIME_RE = re.compile(r"time\s*([=<])\s*([\d.]+)\s*ms", re.IGNORECASE)

# Grace period on top of the echo timeout before the subprocess is killed
_KILL_GRACE = 1.0


def get_platform() -> str:
    """Get the current platform name."""
    system = platform.system().lower()
    if system == "darwin":
        return "macos"
    return system  # "windows" or "linux"


def build_ping_command(
    host: str,
    timeout: float,
    payload_size: int = 32,
    system: Optional[str] = None,
) -> list[str]:
    """
    Build a single-echo ping command line.

    Args:
        host: Address to ping
        timeout: Reply timeout in seconds
        payload_size: ICMP payload size in bytes
        system: Platform override ("windows", "linux", "macos")
    """
    system = system or get_platform()

    if system == "windows":
        return ["ping", "-n", "1", "-w", str(int(timeout * 1000)), "-l", str(payload_size), host]
    if system == "macos":
        # macOS takes -W in milliseconds
        return ["ping", "-c", "1", "-W", str(int(timeout * 1000)), "-s", str(payload_size), host]
    # iputils takes -W in whole seconds
    return ["ping", "-c", "1", "-W", str(max(1, math.ceil(timeout))), "-s", str(payload_size), host]


def parse_ping_output(output: str) -> Optional[float]:
    """
    Extract the round-trip time in milliseconds from ping output.

    "time<1ms" is reported as 0.
    """
    match = _PING_TIME_RE.search(output)
    if not match:
        return None
    if match.group(1) == "<":
        return 0.0
    return float(match.group(2))


async def ping_once(
    host: str,
    timeout: float,
    payload_size: int = 32,
) -> Optional[float]:
    """
    Send one ICMP echo request and wait for the reply.

    Returns:
        RTT in milliseconds, or None when no reply arrived in time
    """
    cmd = build_ping_command(host, timeout, payload_size)
    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.DEVNULL,
    )

    try:
        stdout, _ = await asyncio.wait_for(process.communicate(), timeout=timeout + _KILL_GRACE)
    except asyncio.TimeoutError:
        log.debug("ping %s did not exit within %.1fs", host, timeout + _KILL_GRACE)
        return None
    finally:
        if process.returncode is None:
            process.kill()
            await process.wait()

    if process.returncode != 0:
        return None

    return parse_ping_output(stdout.decode("utf-8", errors="ignore"))
