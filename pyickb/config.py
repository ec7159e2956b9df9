import pyickb.core
import pyickb.errors
import random
import requests
import typing


class ObjectDict(dict):
    def __getattr__(self, name: str) -> typing.Any:
        try:
            value = self[name]
            if type(value) == dict:
                value = ObjectDict(value)
                self[name] = value
            return value
        except KeyError:
            raise AttributeError(name)

    def __setattr__(self, name: str, value: typing.Any) -> None:
        self[name] = value


def entry(code_hash: str, hash_type: int, tx_hash: str, index: int, dep_type: int) -> ObjectDict:
    return ObjectDict({
        'code_hash': bytearray.fromhex(code_hash),
        'hash_type': hash_type,
        'cell_dep': ObjectDict({
            'out_point': ObjectDict({
                'tx_hash': bytearray.fromhex(tx_hash),
                'index': index,
            }),
            'dep_type': dep_type,
        }),
    })


# Code hashes of the two genesis scripts are the same on every chain, only their cell deps differ.
dao_code_hash = '82d76d1b75fe2fd9a27dfbaa65a039221a380d76c926f378d3f81cf3e7e13f2e'
secp256k1_blake160_code_hash = '9bd7e06f3ecf4be0f2fcd2188b23f1b9fcc88e5d4b65a8637b17723bbda3cce8'

develop = ObjectDict({
    'hrp': 'ckt',
    'url': 'http://127.0.0.1:8114',
    'script': ObjectDict({
        'dao': entry(dao_code_hash, 1, '00' * 32, 2, 0),
        'secp256k1_blake160': entry(secp256k1_blake160_code_hash, 1, '00' * 32, 0, 1),
    }),
    # Code cells required by the validators that are not reachable through any registered script.
    'extra_cell_deps': [],
})

mainnet = ObjectDict({
    'hrp': 'ckb',
    # https://github.com/nervosnetwork/ckb/wiki/Public-JSON-RPC-nodes
    'url': 'https://mainnet.ckb.dev',
    'script': ObjectDict({
        'dao': entry(
            dao_code_hash, 1,
            'e2fb199810d49a4d8beec56718ba2593b665db9d52299a0f9e6e75416d73ff5c', 2, 0,
        ),
        'secp256k1_blake160': entry(
            secp256k1_blake160_code_hash, 1,
            '71a7ba8fc96349fea0ed3a5c47992e3b4084b031a42264a018e0072e8172e46c', 0, 1,
        ),
    }),
    'extra_cell_deps': [],
})

testnet = ObjectDict({
    'hrp': 'ckt',
    # https://github.com/nervosnetwork/ckb/wiki/Public-JSON-RPC-nodes
    'url': 'https://testnet.ckb.dev',
    'script': ObjectDict({
        'dao': entry(
            dao_code_hash, 1,
            '8f8c79eb6671709633fe6a46de93c0fedc9c1b8a6527a18d3983879542635c9f', 2, 0,
        ),
        'secp256k1_blake160': entry(
            secp256k1_blake160_code_hash, 1,
            'f8de3bb47d055cdf460d93a2a6e1b05f7432f9777c8c474abf4eec1d4aee5d37', 0, 1,
        ),
    }),
    'extra_cell_deps': [],
})


def register(conf: ObjectDict, name: str, code_hash: str, hash_type: int, tx_hash: str, index: int, dep_type: int):
    # Add a deployed script to a network. Registration order is the order of the transaction's cell deps.
    conf.script[name] = entry(code_hash, hash_type, tx_hash, index, dep_type)


def upgrade(url: str, timeout: float = 10) -> None:
    # Point the develop network at a local node. Genesis scripts live in the first two genesis transactions.
    try:
        r = requests.post(url, json={
            'id': random.randint(0x00000000, 0xffffffff),
            'jsonrpc': '2.0',
            'method': 'get_block_by_number',
            'params': ['0x0']
        }, timeout=timeout)
        r.raise_for_status()
    except requests.RequestException as e:
        raise pyickb.errors.NetworkFailure(str(e)) from e
    t = r.json()['result']['transactions']
    develop.url = url
    develop.script.dao.cell_dep.out_point.tx_hash = bytearray.fromhex(t[0]['hash'][2:])
    develop.script.secp256k1_blake160.cell_dep.out_point.tx_hash = bytearray.fromhex(t[1]['hash'][2:])


class Registry:
    # Read only name to script lookup handed to every component at construction.

    standard = ['secp256k1_blake160', 'pw_lock']

    def __init__(self, conf: ObjectDict) -> None:
        self.conf = conf

    def __contains__(self, name: str) -> bool:
        return name in self.conf.script

    def cell_dep(self, name: str) -> pyickb.core.CellDep:
        return pyickb.core.CellDep.conf_decode(self.conf.script[name].cell_dep)

    def cell_deps(self) -> typing.List[pyickb.core.CellDep]:
        r = [self.cell_dep(e) for e in self.conf.script]
        for e in self.conf.get('extra_cell_deps', []):
            r.append(pyickb.core.CellDep.conf_decode(ObjectDict(e)))
        return r

    def script(self, name: str, args: typing.Optional[bytearray] = None) -> pyickb.core.Script:
        e = self.conf.script[name]
        return pyickb.core.Script(e.code_hash, e.hash_type, args if args is not None else bytearray())

    def standard_locks(self) -> typing.List[pyickb.core.Script]:
        return [self.script(e) for e in self.standard if e in self]

    def token(self) -> pyickb.core.Script:
        # The wrapped token is a sudt whose owner is the owner lock: minting requires spending an owner cell.
        return self.script('sudt', self.script('owner_lock').hash())
