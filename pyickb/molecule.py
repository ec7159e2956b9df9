# Doc: https://github.com/nervosnetwork/rfcs/blob/master/rfcs/0008-serialization/0008-serialization.md
import itertools
import typing


class Uint:
    # Little endian unsigned integer of a fixed byte width.

    def __init__(self, size: int) -> None:
        assert size > 0
        self.lens = size

    def decode(self, buffer: bytearray) -> int:
        assert len(buffer) == self.lens
        return int.from_bytes(buffer, 'little')

    def encode(self, number: int) -> bytearray:
        assert number >= 0
        assert number < 1 << (8 * self.lens)
        return bytearray(number.to_bytes(self.lens, 'little'))

    def size(self) -> int:
        return self.lens


U8 = Uint(1)
U16 = Uint(2)
U32 = Uint(4)
U48 = Uint(6)
U64 = Uint(8)
U128 = Uint(16)


class Struct:
    def __init__(self, kype: typing.List) -> None:
        self.kype = kype

    def decode(self, buffer: bytearray) -> typing.List:
        assert len(buffer) == self.size()
        r = []
        s = 0
        for e in self.kype:
            r.append(e.decode(buffer[s:s+e.size()]))
            s += e.size()
        return r

    def encode(self, pylist: typing.List) -> bytearray:
        assert len(pylist) == len(self.kype)
        r = bytearray()
        for e in zip(self.kype, pylist):
            r.extend(e[0].encode(e[1]))
        return r

    def size(self) -> int:
        return sum([e.size() for e in self.kype])


class Slice:
    # Fixvec: a u32 item count followed by fixed size items.

    def __init__(self, kype: typing.Any) -> None:
        assert hasattr(kype, 'size')
        self.kype = kype

    def decode(self, buffer: bytearray) -> typing.List:
        assert isinstance(buffer, bytearray)
        assert len(buffer) == 4 + U32.decode(buffer[:4]) * self.kype.size()
        return [self.kype.decode(bytearray(e)) for e in itertools.batched(buffer[4:], self.kype.size())]

    def encode(self, pylist: typing.List) -> bytearray:
        body = bytearray(itertools.chain(*[self.kype.encode(e) for e in pylist]))
        head = U32.encode(len(pylist))
        return head + body


class Split:
    # Header of offsets shared by dynvec and table.

    @classmethod
    def decode(cls, buffer: bytearray) -> typing.List[bytearray]:
        assert len(buffer) >= 4
        assert len(buffer) == U32.decode(buffer[:4])
        if len(buffer) == 4:
            return []
        nums = U32.decode(buffer[4:8]) // 4 - 1
        head = []
        for i in range(nums):
            head.append(U32.decode(buffer[i * 4 + 4: i * 4 + 8]))
        head.append(len(buffer))
        return [buffer[head[i]:head[i+1]] for i in range(nums)]

    @classmethod
    def encode(cls, pylist: typing.List[bytearray]) -> bytearray:
        head = bytearray()
        body = bytearray()
        head_size = 4 + 4 * len(pylist)
        for item in pylist:
            head.extend(U32.encode(head_size + len(body)))
            body.extend(item)
        return U32.encode(head_size + len(body)) + head + body


class Scale:
    # Dynvec of variable size items.

    def __init__(self, kype: typing.Any) -> None:
        self.kype = kype

    def decode(self, buffer: bytearray) -> typing.List:
        return [self.kype.decode(e) for e in Split.decode(buffer)]

    def encode(self, pylist: typing.List) -> bytearray:
        return Split.encode([self.kype.encode(e) for e in pylist])


class Table:
    def __init__(self, kype: typing.List) -> None:
        self.kype = kype

    def decode(self, buffer: bytearray) -> typing.List:
        part = Split.decode(buffer)
        # Tables may be extended with trailing fields by newer schemas, never shortened.
        assert len(part) >= len(self.kype)
        return [e[0].decode(e[1]) for e in zip(self.kype, part)]

    def encode(self, pylist: typing.List) -> bytearray:
        assert len(pylist) == len(self.kype)
        return Split.encode([e[0].encode(e[1]) for e in zip(self.kype, pylist)])


class Option:
    def __init__(self, kype: typing.Any) -> None:
        self.kype = kype

    def decode(self, buffer: bytearray) -> typing.Optional[typing.Any]:
        return self.kype.decode(buffer) if len(buffer) > 0x00 else None

    def encode(self, pydata: typing.Optional[typing.Any]) -> bytearray:
        return self.kype.encode(pydata) if pydata is not None else bytearray()


class Custom:
    # Raw bytes already encoded by the caller. A size of 0 means variable length.

    def __init__(self, size: int) -> None:
        self.lens = size

    def decode(self, buffer: bytearray) -> bytearray:
        return buffer

    def encode(self, buffer: bytearray) -> bytearray:
        if self.lens != 0:
            assert len(buffer) == self.lens
        return buffer

    def size(self) -> int:
        assert self.lens != 0
        return self.lens


Byte = U8
Byte32 = Custom(32)


class Bytes:
    @classmethod
    def decode(cls, buffer: bytearray) -> bytearray:
        assert U32.decode(buffer[:4]) == len(buffer) - 4
        return buffer[4:]

    @classmethod
    def encode(cls, buffer: bytearray) -> bytearray:
        return U32.encode(len(buffer)) + buffer
