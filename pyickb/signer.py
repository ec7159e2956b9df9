import pyickb.assembler
import pyickb.core
import typing


class SighashAllSigner:
    # Signs the lock group of an account with the sighash all scheme. Producing the signature itself is left to
    # sign_digest, which receives the 32 byte message and returns a 65 byte recoverable signature: a private key, a
    # hardware wallet or an external wallet prompt all fit behind it.
    #
    # See: https://github.com/nervosnetwork/ckb-system-scripts/wiki/How-to-sign-transaction

    def __init__(self, sign_digest: typing.Callable[[bytearray], bytearray]) -> None:
        self.sign_digest = sign_digest

    def sign(self, skeleton: pyickb.assembler.Skeleton, lock: pyickb.core.Script) -> pyickb.core.Transaction:
        tx = skeleton.transaction()
        group = [i for i, c in enumerate(skeleton.inputs) if c.output.lock == lock]
        if not group:
            return tx
        major = group[0]
        digest = tx.hash_sighash_all(major, group[1:])
        signature = self.sign_digest(digest)
        assert len(signature) == pyickb.assembler.signature_size
        witness = pyickb.core.WitnessArgs.molecule_decode(tx.witnesses[major])
        witness.lock = bytearray(signature)
        tx.witnesses[major] = witness.molecule()
        return tx
