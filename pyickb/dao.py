# Nervos DAO cells and the receipts that account for them.
# See: https://github.com/nervosnetwork/rfcs/blob/master/rfcs/0023-dao-deposit-withdraw/0023-dao-deposit-withdraw.md
import pyickb.config
import pyickb.core
import pyickb.molecule
import typing

# Withdrawal requests are locked for a whole number of 180 epoch cycles counted from the deposit.
lock_period = 180
since_flag_epoch = 0x20 << 56

receipt_schema = pyickb.molecule.Struct([pyickb.molecule.U16, pyickb.molecule.U48])
# Largest unoccupied capacity per deposit a receipt can record.
receipt_amount_limit = (1 << 48) - 1


def deposit_data() -> bytearray:
    return pyickb.molecule.U64.encode(0)


def withdrawal_data(deposit_block_number: int) -> bytearray:
    assert deposit_block_number > 0
    return pyickb.molecule.U64.encode(deposit_block_number)


def is_dao(registry: pyickb.config.Registry, cell: pyickb.core.Cell) -> bool:
    return pyickb.core.script_eq(cell.output.kype, registry.script('dao'))


def is_deposit(registry: pyickb.config.Registry, cell: pyickb.core.Cell) -> bool:
    return is_dao(registry, cell) and cell.data == deposit_data()


def is_withdrawal_request(registry: pyickb.config.Registry, cell: pyickb.core.Cell) -> bool:
    return is_dao(registry, cell) and cell.data != deposit_data()


def deposit_block_number(cell: pyickb.core.Cell) -> int:
    # The block number a withdrawal request remembers from its deposit.
    return pyickb.molecule.U64.decode(cell.data[:8])


def receipt_encode(deposit_quantity: int, deposit_amount: int) -> bytearray:
    return receipt_schema.encode([deposit_quantity, deposit_amount])


def receipt_decode(data: bytearray) -> typing.Tuple[int, int]:
    deposit_quantity, deposit_amount = receipt_schema.decode(data)
    return deposit_quantity, deposit_amount


def since(deposit: pyickb.core.Epoch, withdraw: pyickb.core.Epoch) -> int:
    # Earliest since at which a withdrawal request can be spent: the deposit epoch plus the smallest multiple of the
    # lock period covering the time spent deposited.
    deposited = withdraw.number - deposit.number
    if withdraw.index * deposit.length > deposit.index * withdraw.length:
        deposited += 1
    locked = (deposited + lock_period - 1) // lock_period * lock_period
    epoch = pyickb.core.Epoch(deposit.number + locked, deposit.index, deposit.length)
    return since_flag_epoch | epoch.encode()


def since_epoch(since: int) -> pyickb.core.Epoch:
    assert since >> 56 == 0x20
    return pyickb.core.Epoch.decode(since & 0xffffffffffffff)


def maximum_withdraw(cell: pyickb.core.Cell, deposit: pyickb.core.Header, withdraw: pyickb.core.Header) -> int:
    # Occupied capacity earns nothing, the rest grows with the accumulate rate between the two blocks.
    occupied = cell.occupied_capacity()
    counted = cell.output.capacity - occupied
    return counted * withdraw.ar() // deposit.ar() + occupied
