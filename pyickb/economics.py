# Conversion between CKB locked in the DAO and the wrapped token.
#
# One token is worth one CKB deposited at genesis. A deposit made later, when the accumulate rate has grown, is worth
# proportionally less. Past the soft cap, every additional token is discounted by 10%, so splitting a large amount into
# several deposits is always at least as good as one big deposit.
import pyickb.core
import pyickb.denomination

# Accumulate rate of the genesis block.
AR_0 = 10**16
ICKB_SOFT_CAP_PER_DEPOSIT = 100000 * pyickb.denomination.ckbytes


def ickb_value(unoccupied_capacity: int, header: pyickb.core.Header) -> int:
    assert unoccupied_capacity >= 0
    r = unoccupied_capacity * AR_0 // header.ar()
    if r > ICKB_SOFT_CAP_PER_DEPOSIT:
        r -= (r - ICKB_SOFT_CAP_PER_DEPOSIT) // 10
    return r


def receipt_ickb_value(deposit_quantity: int, deposit_amount: int, header: pyickb.core.Header) -> int:
    return deposit_quantity * ickb_value(deposit_amount, header)


def ckb_soft_cap_per_deposit(header: pyickb.core.Header) -> int:
    # Unoccupied capacity that converts exactly to the soft cap at this header.
    return ICKB_SOFT_CAP_PER_DEPOSIT * header.ar() // AR_0
