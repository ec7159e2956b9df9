# Every failure aborts the construction of the current transaction. The five families tell the caller what to do
# next: invariant violations are programming errors, economic infeasibility needs more funds, not found may resolve
# itself once new cells appear, network failures and timeouts need a manual check of the chain.
import typing


class Error(Exception):
    code = 'error'

    def __init__(self, message: str = '', data: typing.Optional[typing.Dict] = None) -> None:
        super().__init__(message)
        self.message = message
        self.data = dict(data) if data else {}

    def __str__(self) -> str:
        if self.message:
            return f'{self.code}: {self.message}'
        return self.code


class InvariantViolation(Error):
    code = 'invariant_violation'


class MissingLocationMetadata(InvariantViolation):
    code = 'missing_location_metadata'


class AlreadyPopulated(InvariantViolation):
    code = 'already_populated'


class UndefinedScriptComparison(InvariantViolation):
    code = 'undefined_script_comparison'


class NotADeposit(InvariantViolation):
    code = 'not_a_deposit'


class EconomicInfeasibility(Error):
    code = 'economic_infeasibility'


class InsufficientFunds(EconomicInfeasibility):
    code = 'insufficient_funds'


class InsufficientDeposit(EconomicInfeasibility):
    code = 'insufficient_deposit'


class DepositTooLarge(EconomicInfeasibility):
    code = 'deposit_too_large'


class NotFound(Error):
    code = 'not_found'


class DepositNotFound(NotFound):
    code = 'deposit_not_found'


class WithdrawalNotFound(NotFound):
    code = 'withdrawal_not_found'


class HeaderNotFound(NotFound):
    code = 'header_not_found'


class BlockHashNotFound(NotFound):
    code = 'block_hash_not_found'


class HeaderDepNotFound(NotFound):
    code = 'header_dep_not_found'


class OwnerCellNotFound(NotFound):
    code = 'owner_cell_not_found'


class NetworkFailure(Error):
    code = 'network_failure'


class RPCError(NetworkFailure):
    # The node answered with a JSON-RPC error object, kept in data.
    code = 'rpc_error'


class Timeout(Error):
    code = 'timeout'


class TransactionTimeout(Timeout):
    code = 'transaction_timeout'


class UnexpectedStatus(Timeout):
    code = 'unexpected_status'
