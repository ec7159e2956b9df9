import logging
import pyickb.core
import pyickb.rpc
import typing

log = logging.getLogger(__name__)

# Fee rates are expressed in shannons per 1000 bytes.
default_rate = 1000


def fee(size: int, rate: int) -> int:
    # Ceiling of size * rate / 1000.
    assert size >= 0
    assert rate >= 0
    return -(-size * rate // 1000)


def transaction_size(tx: pyickb.core.Transaction) -> int:
    # The serialized transaction sits in a block's transaction vector, which adds a 4 byte offset.
    return len(tx.molecule()) + 4


def transaction_fee(tx: pyickb.core.Transaction, rate: int) -> int:
    return fee(transaction_size(tx), rate)


def estimate_rate(client: pyickb.rpc.Client, default: int = default_rate, target: typing.Optional[int] = None) -> int:
    # Median fee rate of recent blocks as reported by the node, never below the default.
    r = client.get_fee_rate_statistics(hex(target) if target is not None else None)
    if not r:
        return default
    rate = max(default, int(r['median'], 16))
    log.debug('estimate rate %s', rate)
    return rate
