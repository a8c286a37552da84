from .common import NamingService
from .cns import Cns
from .ens import Ens
from .udapi import Udapi
from .zns import Zns

__all__ = ["NamingService", "Ens", "Zns", "Cns", "Udapi"]
