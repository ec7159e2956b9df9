from . import denomination
from . import molecule
from . import errors
from . import core
from . import config
from . import rpc
from . import batch
from . import cache
from . import collector
from . import dao
from . import economics
from . import fee
from . import assembler
from . import builder
from . import signer
from . import wallet
