from __future__ import annotations

import asyncio

import pytest

from dns_speedtester import icmp
from dns_speedtester.icmp import build_ping_command, parse_ping_output, ping_once

LINUX_REPLY = """PING 8.8.8.8 (8.8.8.8) 32(60) bytes of data.
40 bytes from 8.8.8.8: icmp_seq=1 ttl=117 time=12.4 ms

--- 8.8.8.8 ping statistics ---
1 packets transmitted, 1 received, 0% packet loss, time 0ms
rtt min/avg/max/mdev = 12.401/12.401/12.401/0.000 ms
"""

WINDOWS_REPLY = """Pinging 8.8.8.8 with 32 bytes of data:
Reply from 8.8.8.8: bytes=32 time=27ms TTL=117
"""

WINDOWS_FAST_REPLY = "Reply from 192.168.1.1: bytes=32 time<1ms TTL=64"


@pytest.mark.parametrize(
    "system, expected",
    [
        ("windows", ["ping", "-n", "1", "-w", "3000", "-l", "32", "9.9.9.9"]),
        ("macos", ["ping", "-c", "1", "-W", "3000", "-s", "32", "9.9.9.9"]),
        ("linux", ["ping", "-c", "1", "-W", "3", "-s", "32", "9.9.9.9"]),
    ],
)
def test_build_ping_command(system: str, expected: list[str]) -> None:
    assert build_ping_command("9.9.9.9", 3.0, 32, system=system) == expected


def test_linux_timeout_rounds_up_to_whole_seconds() -> None:
    assert build_ping_command("9.9.9.9", 0.3, 56, system="linux")[4] == "1"
    assert build_ping_command("9.9.9.9", 2.5, 56, system="linux")[4] == "3"


@pytest.mark.parametrize(
    "output, rtt",
    [
        (LINUX_REPLY, 12.4),
        (WINDOWS_REPLY, 27.0),
        (WINDOWS_FAST_REPLY, 0.0),
        ("Request timed out.", None),
        ("", None),
    ],
)
def test_parse_ping_output(output: str, rtt) -> None:
    assert parse_ping_output(output) == rtt


class FakeProcess:
    def __init__(self, stdout: str = "", returncode: int = 0, hang: bool = False):
        self.stdout = stdout.encode()
        self.final_returncode = returncode
        self.returncode = None
        self.hang = hang
        self.killed = False

    async def communicate(self):
        if self.hang:
            await asyncio.sleep(10)
        self.returncode = self.final_returncode
        return self.stdout, None

    def kill(self) -> None:
        self.killed = True
        self.returncode = -9

    async def wait(self) -> int:
        return self.returncode


def _patch_subprocess(monkeypatch, process: FakeProcess) -> list:
    commands = []

    async def fake_exec(*cmd, **kwargs):
        commands.append(list(cmd))
        return process

    monkeypatch.setattr(icmp.asyncio, "create_subprocess_exec", fake_exec)
    return commands


@pytest.mark.asyncio
async def test_ping_once_reply(monkeypatch) -> None:
    commands = _patch_subprocess(monkeypatch, FakeProcess(LINUX_REPLY))
    monkeypatch.setattr(icmp, "get_platform", lambda: "linux")

    assert await ping_once("8.8.8.8", 3.0, 32) == 12.4
    assert commands == [["ping", "-c", "1", "-W", "3", "-s", "32", "8.8.8.8"]]


@pytest.mark.asyncio
async def test_ping_once_no_reply(monkeypatch) -> None:
    _patch_subprocess(monkeypatch, FakeProcess("100% packet loss", returncode=1))

    assert await ping_once("192.0.2.1", 1.0) is None


@pytest.mark.asyncio
async def test_ping_once_kills_hung_process(monkeypatch) -> None:
    process = FakeProcess(hang=True)
    _patch_subprocess(monkeypatch, process)
    monkeypatch.setattr(icmp, "_KILL_GRACE", 0.0)

    assert await ping_once("192.0.2.1", 0.05) is None
    assert process.killed


@pytest.mark.asyncio
async def test_missing_ping_binary_raises(monkeypatch) -> None:
    async def missing(*cmd, **kwargs):
        raise FileNotFoundError("ping")

    monkeypatch.setattr(icmp.asyncio, "create_subprocess_exec", missing)

    with pytest.raises(OSError):
        await ping_once("192.0.2.1", 1.0)
