import pyickb
import pytest


def test_receipt():
    data = pyickb.dao.receipt_encode(3, 1000 * pyickb.denomination.ckbytes)
    assert len(data) == 8
    assert pyickb.dao.receipt_decode(data) == (3, 1000 * pyickb.denomination.ckbytes)
    with pytest.raises(AssertionError):
        pyickb.dao.receipt_encode(0x10000, 0)


def test_cell_kind(chain):
    dao = chain.registry.script('dao')
    deposit = chain.cell(1000 * pyickb.denomination.ckbytes, chain.lock, dao, pyickb.dao.deposit_data())
    request = chain.cell(1000 * pyickb.denomination.ckbytes, chain.lock, dao, pyickb.dao.withdrawal_data(42))
    capacity = chain.cell(1000 * pyickb.denomination.ckbytes, chain.lock)
    assert pyickb.dao.is_deposit(chain.registry, deposit)
    assert not pyickb.dao.is_withdrawal_request(chain.registry, deposit)
    assert pyickb.dao.is_withdrawal_request(chain.registry, request)
    assert pyickb.dao.deposit_block_number(request) == 42
    assert not pyickb.dao.is_dao(chain.registry, capacity)


def test_since():
    deposit = pyickb.core.Epoch(5, 100, 1000)
    since = pyickb.dao.since(deposit, pyickb.core.Epoch(100, 500, 1000))
    assert since >> 56 == 0x20
    assert pyickb.dao.since_epoch(since) == pyickb.core.Epoch(185, 100, 1000)
    # Exactly one lock period.
    since = pyickb.dao.since(deposit, pyickb.core.Epoch(185, 100, 1000))
    assert pyickb.dao.since_epoch(since) == pyickb.core.Epoch(185, 100, 1000)
    # A fraction past one lock period costs a whole second period.
    since = pyickb.dao.since(deposit, pyickb.core.Epoch(185, 101, 1000))
    assert pyickb.dao.since_epoch(since) == pyickb.core.Epoch(365, 100, 1000)
    # Fractions of different lengths are compared by value.
    since = pyickb.dao.since(deposit, pyickb.core.Epoch(185, 180, 1800))
    assert pyickb.dao.since_epoch(since) == pyickb.core.Epoch(185, 100, 1000)


def test_maximum_withdraw(chain):
    cell = chain.cell(
        1082 * pyickb.denomination.ckbytes,
        chain.lock,
        chain.registry.script('dao'),
        pyickb.dao.withdrawal_data(1),
    )
    assert cell.occupied_capacity() == 102 * pyickb.denomination.ckbytes
    deposit = chain.header(2, pyickb.core.Epoch(0, 2, 1000), 10**16)
    withdraw = chain.header(3, pyickb.core.Epoch(0, 3, 1000), 11 * 10**15)
    assert pyickb.dao.maximum_withdraw(cell, deposit, withdraw) == 1180 * pyickb.denomination.ckbytes
    assert pyickb.dao.maximum_withdraw(cell, deposit, deposit) == cell.output.capacity
