import pyickb
import pytest

ckb = pyickb.denomination.ckbytes


def wallet(chain):
    w = pyickb.wallet.Wallet(chain.registry, chain.client, chain.lock, chain.signer, pyickb.rpc.Retry(3, 0))
    w.collector = chain.collector
    return w


def test_capacity(chain):
    chain.cell(100 * ckb, chain.lock)
    chain.cell(200 * ckb, chain.lock)
    chain.cell(300 * ckb, chain.registry.script('owner_lock'))
    assert wallet(chain).capacity() == 300 * ckb


def test_transfer(chain):
    chain.cell(1000 * ckb, chain.lock)
    script = chain.registry.script('secp256k1_blake160', bytearray([2] * 20))
    sent = wallet(chain).transfer(script, 100 * ckb)
    outputs = sent.transaction.raw.outputs
    assert outputs[0].lock == script
    assert outputs[0].capacity == 100 * ckb
    assert outputs[1].lock == chain.lock
    assert outputs[1].capacity == 900 * ckb - sent.fee


def test_deposit(chain):
    chain.cell(2000 * ckb, chain.lock)
    chain.cell(100 * ckb, chain.registry.script('owner_lock'))
    sent = wallet(chain).deposit(1000 * ckb)
    data = sent.transaction.raw.outputs_data
    assert sent.transaction.raw.outputs[0].capacity == 1000 * ckb
    assert pyickb.dao.receipt_decode(data[1]) == (1, 918 * ckb)


def test_deposit_split(chain):
    chain.cell(300000 * ckb, chain.lock)
    chain.cell(100 * ckb, chain.registry.script('owner_lock'))
    sent = wallet(chain).deposit(250000 * ckb)
    outputs = sent.transaction.raw.outputs
    data = sent.transaction.raw.outputs_data
    amount = 250000 * ckb // 3
    assert [e.capacity for e in outputs[:3]] == [amount] * 3
    assert pyickb.dao.receipt_decode(data[3]) == (3, amount - 82 * ckb)
    assert len(outputs) == 6


def test_withdrawal_request(chain):
    dao = chain.registry.script('dao')
    h = chain.header(100, pyickb.core.Epoch(5, 100, 1000))
    deposit = chain.cell(1082 * ckb, chain.registry.script('ickb_logic'), dao, pyickb.dao.deposit_data(), h)
    receipt = chain.cell(
        114 * ckb,
        chain.registry.script('receipt_lock', chain.lock.hash()),
        chain.registry.script('receipt_type'),
        pyickb.dao.receipt_encode(1, 1000 * ckb),
        h,
    )
    receipt.out_point = pyickb.core.OutPoint(deposit.out_point.tx_hash, 1)
    sent = wallet(chain).withdrawal_request()
    inputs = sent.transaction.raw.inputs
    assert inputs[0].previous_output == deposit.out_point
    assert inputs[1].previous_output == receipt.out_point
    assert pyickb.dao.deposit_block_number(pyickb.core.Cell(
        sent.transaction.raw.outputs[0],
        sent.transaction.raw.outputs_data[0],
    )) == 100


def test_withdrawal_request_deposit_not_found(chain):
    with pytest.raises(pyickb.errors.DepositNotFound):
        wallet(chain).withdrawal_request()
    # A receipt whose deposits are already spent.
    chain.cell(
        114 * ckb,
        chain.registry.script('receipt_lock', chain.lock.hash()),
        chain.registry.script('receipt_type'),
        pyickb.dao.receipt_encode(1, 1000 * ckb),
    )
    with pytest.raises(pyickb.errors.DepositNotFound):
        wallet(chain).withdrawal_request()


def test_withdraw(chain):
    chain.header(100, pyickb.core.Epoch(5, 100, 1000))
    h = chain.header(2000, pyickb.core.Epoch(100, 500, 1000))
    chain.tip(pyickb.core.Epoch(200, 0, 1000))
    request = chain.cell(1082 * ckb, chain.lock, chain.registry.script('dao'), pyickb.dao.withdrawal_data(100), h)
    sent = wallet(chain).withdraw()
    assert sent.transaction.raw.inputs[0].previous_output == request.out_point
    assert sent.transaction.raw.outputs[0].capacity == 1082 * ckb - sent.fee


def test_withdraw_not_found(chain):
    chain.cell(1000 * ckb, chain.lock)
    with pytest.raises(pyickb.errors.WithdrawalNotFound):
        wallet(chain).withdraw()
    assert chain.client.sent == []


def test_deposit_below_minimum(chain):
    chain.cell(1000 * ckb, chain.lock)
    chain.cell(100 * ckb, chain.registry.script('owner_lock'))
    for amount in [0, 82 * ckb - 1]:
        with pytest.raises(pyickb.errors.InsufficientDeposit):
            wallet(chain).deposit(amount)
    assert chain.client.sent == []
