# import version
from ._version import __version__

# import all modules
from . import covModel
from . import domain
from . import problem
from . import solver
from . import directGaussSim
