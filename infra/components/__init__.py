from infra.components.api import Api
from infra.components.data_stores import DataStores
from infra.components.firewall import WebFirewall
from infra.components.frontend import Frontend
from infra.components.identity import Identity
from infra.components.networking import Networking
from infra.components.search import Search
from infra.components.vpn import SiteToSiteVpn

__all__ = [
    "Api",
    "DataStores",
    "Frontend",
    "Identity",
    "Networking",
    "Search",
    "SiteToSiteVpn",
    "WebFirewall",
]
