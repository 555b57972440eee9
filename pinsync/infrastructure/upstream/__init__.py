from pinsync.infrastructure.upstream.di import UpstreamProvider
from pinsync.infrastructure.upstream.esri import EsriFeatureServiceSource
from pinsync.infrastructure.upstream.fallback import FallbackDataSource
from pinsync.infrastructure.upstream.synthetic import SyntheticDataSource

__all__ = [
    "EsriFeatureServiceSource",
    "FallbackDataSource",
    "SyntheticDataSource",
    "UpstreamProvider",
]
