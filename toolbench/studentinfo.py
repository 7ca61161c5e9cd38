"""Student registration over a local stream socket: record format, server and client."""

from __future__ import annotations

import dataclasses
import enum
import socket
import struct
import sys
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

DEFAULT_SOCKET_PATH = "/tmp/test1.socket"
SERVER_PORT = 9003
SERVER_ADDRESS = "192.168.198.200"
BACKLOG = 100
NAME_SIZE = 20

_LAYOUT = struct.Struct(f"={NAME_SIZE}s3i")
INFO_SIZE = _LAYOUT.size


class Command(enum.IntEnum):
    """Request codes."""

    REGISTER = 1001
    CHECK = 1002
    GETINFO = 1003


class Status(enum.IntEnum):
    """Reply status codes."""

    OK = 30
    ERR = 31


@dataclass
class StudentInfo:
    """One fixed-size record exchanged in both directions."""

    name: str
    age: int = 0
    cmd: int = Command.REGISTER
    stat: int = 0

    def to_bytes(self) -> bytes:
        """Pack into the wire record; the name must fit with its terminating NUL."""
        encoded = self.name.encode("utf-8")
        if len(encoded) >= NAME_SIZE:
            raise ValueError(f"name must be shorter than {NAME_SIZE} bytes")
        return _LAYOUT.pack(encoded, self.age, self.cmd, self.stat)

    @classmethod
    def from_bytes(cls, data: bytes) -> StudentInfo:
        """Unpack a wire record."""
        if len(data) < INFO_SIZE:
            raise ValueError(f"record needs {INFO_SIZE} bytes, got {len(data)}")
        raw_name, age, cmd, stat = _LAYOUT.unpack(bytes(data[:INFO_SIZE]))
        name = raw_name.split(b"\0", 1)[0].decode("utf-8", errors="replace")
        return cls(name=name, age=age, cmd=cmd, stat=stat)


def handle_request(info: StudentInfo) -> Optional[StudentInfo]:
    """Act on one request; return the reply to send, or None when there is none."""
    if info.cmd == Command.REGISTER:
        print("用户要注册学生信息")
        print(f"学生姓名：{info.name}，学生年龄：{info.age}")
        return dataclasses.replace(info, stat=Status.OK)
    return None


def _recv_exactly(sock: socket.socket, size: int) -> Optional[bytes]:
    """Read ``size`` bytes; None on a clean end of stream before any byte."""
    chunks = bytearray()
    while len(chunks) < size:
        chunk = sock.recv(size - len(chunks))
        if not chunk:
            if not chunks:
                return None
            raise ConnectionError("connection closed in the middle of a record")
        chunks.extend(chunk)
    return bytes(chunks)


def serve(path: str = DEFAULT_SOCKET_PATH) -> int:
    """Accept one client on ``path`` and answer its requests until it disconnects.

    Returns the number of replies sent.
    """
    with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as listener:
        print(f"socketfd = {listener.fileno()}.")
        listener.bind(path)
        print("bind success.")
        listener.listen(BACKLOG)
        conn, _ = listener.accept()
        with conn:
            print(f"连接已经建立，client fd = {conn.fileno()}.")
            replies = 0
            while True:
                data = _recv_exactly(conn, INFO_SIZE)
                if data is None:
                    return replies
                reply = handle_request(StudentInfo.from_bytes(data))
                if reply is not None:
                    conn.sendall(reply.to_bytes())
                    replies += 1


def register_student(sock: socket.socket, name: str, age: int) -> bool:
    """Send a registration request and report whether the server accepted it."""
    sock.sendall(StudentInfo(name=name, age=age, cmd=Command.REGISTER).to_bytes())
    data = _recv_exactly(sock, INFO_SIZE)
    if data is None:
        raise ConnectionError("server closed the connection")
    return StudentInfo.from_bytes(data).stat == Status.OK


def _tokens(lines: Iterable[str]) -> Iterator[str]:
    for line in lines:
        yield from line.split()


def server_main(argv: list[str] | None = None) -> int:
    """Run the server on the given socket path or the default one."""
    args = sys.argv[1:] if argv is None else list(argv)
    path = args[0] if args else DEFAULT_SOCKET_PATH
    try:
        serve(path)
    except OSError as exc:
        print(f"server: {exc}", file=sys.stderr)
        return 1
    return 0


def client_main(argv: list[str] | None = None) -> int:
    """Read names and ages from standard input and register each one."""
    args = sys.argv[1:] if argv is None else list(argv)
    path = args[0] if args else DEFAULT_SOCKET_PATH
    with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
        print(f"socketfd = {sock.fileno()}.")
        try:
            sock.connect(path)
        except OSError as exc:
            print(f"connect: {exc}", file=sys.stderr)
            return 1
        print("成功建立连接")
        tokens = _tokens(sys.stdin)
        while True:
            print("请输入学生姓名")
            name = next(tokens, None)
            if name is None:
                return 0
            print("请输入学生年龄", end="", flush=True)
            age_text = next(tokens, None)
            if age_text is None:
                return 0
            try:
                age = int(age_text)
                accepted = register_student(sock, name, age)
            except ValueError as exc:
                print(f"\n{exc}", file=sys.stderr)
                return 1
            except OSError as exc:
                print(f"\n{exc}", file=sys.stderr)
                return 1
            print("发送了1个学生信息")
            print("注册学生信息成功" if accepted else "注册学生信息失败")


if __name__ == "__main__":
    sys.exit(client_main())