import pyickb


class Client(pyickb.rpc.Client):
    def __init__(self, objects):
        super().__init__('http://127.0.0.1:8114')
        self.objects = objects
        self.search_keys = []

    def get_block_hash(self, block_number):
        return '0x' + block_number[2:].rjust(64, '0')

    def get_cells(self, search_key, order, limit, after):
        self.search_keys.append(search_key)
        return {'last_cursor': '0x', 'objects': self.objects}


def cell(lock, kype, capacity, number):
    return {
        'block_number': hex(number),
        'out_point': {'tx_hash': '0x' + f'{number:02x}' * 32, 'index': '0x0'},
        'output': {'capacity': hex(capacity), 'lock': lock.rpc(), 'type': kype.rpc() if kype else None},
        'output_data': '0x',
        'tx_index': '0x0',
    }


def test_search_key():
    lock = pyickb.core.Script(bytearray(32), 1, bytearray([1]))
    kype = pyickb.core.Script(bytearray([2] * 32), 1, bytearray())
    assert pyickb.collector.Query(lock).search_key() == {
        'script': lock.rpc(),
        'script_type': 'lock',
        'script_search_mode': 'exact',
        'with_data': True,
    }
    r = pyickb.collector.Query(lock, kype_empty=True, data_empty=True).search_key()
    assert r['filter'] == {'script_len_range': ['0x0', '0x1'], 'output_data_len_range': ['0x0', '0x1']}
    r = pyickb.collector.Query(lock, kype=kype, block_range=(10, 11)).search_key()
    assert r['filter'] == {'script': kype.rpc(), 'block_range': ['0xa', '0xb']}


def test_collect():
    lock = pyickb.core.Script(bytearray(32), 1, bytearray([1]))
    kype = pyickb.core.Script(bytearray([2] * 32), 1, bytearray())
    kype_longer = pyickb.core.Script(bytearray([2] * 32), 1, bytearray([3]))
    client = Client([cell(lock, kype, 100, 1), cell(lock, kype_longer, 200, 2)])
    r = pyickb.collector.Collector(client).collect(pyickb.collector.Query(lock, kype=kype))
    assert len(r) == 1
    assert r[0].output.capacity == 100
    assert r[0].block_number == 1
    assert r[0].block_hash == bytearray(31) + bytearray([1])
    assert r[0].located()
    r = pyickb.collector.Collector(client).collect(pyickb.collector.Query(lock))
    assert [e.output.capacity for e in r] == [100, 200]
