"""Vendor adapters for retrieving documentation records from MSP platforms."""

from .base_adapter import BaseAdapter
from .atera import AteraAdapter
from .itboost import ITBoostAdapter
from .itglue import ITGlueAdapter
from .ninjaone import NinjaOneAdapter
from ..errors import UnknownVendorError

ADAPTERS = {
    AteraAdapter.name: AteraAdapter,
    ITGlueAdapter.name: ITGlueAdapter,
    NinjaOneAdapter.name: NinjaOneAdapter,
    ITBoostAdapter.name: ITBoostAdapter
}


class AdapterFactory:
    """Factory for creating adapter instances based on configuration."""

    @staticmethod
    def create_adapter(config: dict, client=None, logger=None) -> BaseAdapter:
        """Create the adapter named by ``vendor.name``.

        Args:
            config: Configuration dictionary
            client: Optional pre-built VendorApiClient
            logger: Logger instance

        Returns:
            BaseAdapter subclass instance

        Raises:
            UnknownVendorError: If the vendor is not supported
        """
        vendor = str(config.get('vendor', {}).get('name') or '').strip().lower()

        adapter_class = ADAPTERS.get(vendor)
        if adapter_class is None:
            raise UnknownVendorError(
                f"Unsupported vendor: '{vendor}'. Must be one of: {', '.join(sorted(ADAPTERS))}"
            )
        return adapter_class(config, client=client, logger=logger)


create_adapter = AdapterFactory.create_adapter

__all__ = [
    'ADAPTERS',
    'AdapterFactory',
    'create_adapter',
    'BaseAdapter',
    'AteraAdapter',
    'ITBoostAdapter',
    'ITGlueAdapter',
    'NinjaOneAdapter'
]
