import pyickb
import pytest


def test_uint():
    assert pyickb.molecule.U16.encode(0x0102) == bytearray([0x02, 0x01])
    assert pyickb.molecule.U48.encode(1).hex() == '010000000000'
    assert pyickb.molecule.U64.decode(bytearray([0xff] * 8)) == 0xffffffffffffffff
    with pytest.raises(AssertionError):
        pyickb.molecule.U16.encode(0x10000)
    with pytest.raises(AssertionError):
        pyickb.molecule.U64.decode(bytearray(7))


def test_struct():
    s = pyickb.molecule.Struct([pyickb.molecule.U16, pyickb.molecule.U48])
    assert s.size() == 8
    assert s.encode([3, 7]).hex() == '0300070000000000'
    assert s.decode(bytearray.fromhex('0300070000000000')) == [3, 7]


def test_slice():
    s = pyickb.molecule.Slice(pyickb.molecule.Byte32)
    assert s.encode([]) == bytearray(4)
    data = s.encode([bytearray([1] * 32), bytearray([2] * 32)])
    assert len(data) == 4 + 64
    assert s.decode(data) == [bytearray([1] * 32), bytearray([2] * 32)]


def test_bytes():
    assert pyickb.molecule.Bytes.encode(bytearray([0x00, 0x01])).hex() == '020000000001'
    assert pyickb.molecule.Bytes.decode(bytearray.fromhex('020000000001')) == bytearray([0x00, 0x01])


def test_table():
    t = pyickb.molecule.Table([pyickb.molecule.U32, pyickb.molecule.Bytes])
    data = t.encode([1, bytearray(b'ab')])
    # Full size, two offsets, four bytes of u32 and six bytes of bytes.
    assert len(data) == 4 + 8 + 4 + 6
    assert pyickb.molecule.U32.decode(data[:4]) == len(data)
    assert t.decode(data) == [1, bytearray(b'ab')]
    # A reader that knows fewer fields ignores the trailing ones.
    assert pyickb.molecule.Table([pyickb.molecule.U32]).decode(data) == [1]
    assert pyickb.molecule.Table([]).encode([]) == bytearray([4, 0, 0, 0])


def test_option():
    o = pyickb.molecule.Option(pyickb.molecule.Bytes)
    assert o.encode(None) == bytearray()
    assert o.decode(bytearray()) is None
    assert o.decode(o.encode(bytearray())) == bytearray()


def test_witness_args():
    w = pyickb.core.WitnessArgs(bytearray(65), pyickb.molecule.U64.encode(1), None)
    r = pyickb.core.WitnessArgs.molecule_decode(w.molecule())
    assert r == w
    assert r.output_type is None
