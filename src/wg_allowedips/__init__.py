"""WireGuard allowed-ips synchronizer.

This package keeps the ``AllowedIPs`` of every peer on a WireGuard interface
in step with the kernel routing table.  A route ``D via N`` belongs to the
peer whose allowed ranges contain the next-hop ``N``; the synchronizer adds
``D`` to that peer and removes it from any other peer still listing it.

The pieces are deliberately small:

* :mod:`~wg_allowedips.addr` parses addresses and CIDR ranges;
* :mod:`~wg_allowedips.iproute` and :mod:`~wg_allowedips.netlink` observe
  kernel routes;
* :mod:`~wg_allowedips.wireguard` reads and writes peer configuration;
* :mod:`~wg_allowedips.reconciler` decides which peer gains or loses a route;
* :class:`~wg_allowedips.sync.AllowedIPsSynchronizer` runs a full pass.

All state is rebuilt from the live interface on every pass, so nothing is
persisted between runs.
"""

from .model import Device, Peer, Route  # noqa: F401
from .sync import AllowedIPsSynchronizer, SyncOptions  # noqa: F401

__all__ = ["AllowedIPsSynchronizer", "Device", "Peer", "Route", "SyncOptions"]
