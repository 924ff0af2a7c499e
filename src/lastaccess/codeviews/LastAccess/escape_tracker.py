from loguru import logger

from .access_scanner import AccessScan


class EscapeTracker:
    """
    Address-of poisoning for one binding.

    Taking ``&x`` at site ``p`` poisons ``p`` and every later site. An
    explicit move of ``x`` (a ``Move`` node, or an ordinal supplied by the
    calling pass in ``extra_resets``) clears poisoning for the sites after it.
    """

    def __init__(self, scan, extra_resets=()):
        self.scan = scan
        self.extra_resets = frozenset(extra_resets)
        self.poison_points = []
        self.reset_points = []
        poisoned = set()
        escaped = False
        for site in scan.cfg.sites:
            record = scan[site.ordinal]
            if record.address_of:
                escaped = True
                self.poison_points.append(site.ordinal)
            if escaped:
                poisoned.add(site.ordinal)
            if record.resets or site.ordinal in self.extra_resets:
                if escaped:
                    logger.debug(f"{scan.binding.name}: escape reset at site {site.ordinal}")
                escaped = False
                self.reset_points.append(site.ordinal)
        self.poisoned = frozenset(poisoned)

    def is_poisoned(self, ordinal):
        return ordinal in self.poisoned

    @property
    def escaped(self):
        return bool(self.poison_points)


def track(cfg, binding, extra_resets=()):
    """Ordinals of the sites at which ``binding`` is escape-poisoned"""
    return EscapeTracker(AccessScan(cfg, binding), extra_resets).poisoned
