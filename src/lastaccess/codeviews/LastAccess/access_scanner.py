"""
Access Scanner: tags every site with how it touches one binding.

The CFG itself is never modified; the scan result is a per-binding view
over it, so several bindings (or several workers) can share one CFG.
"""
from dataclasses import dataclass

from ...tree_parser import nodes as N
from ...utils import stmt_nodes


@dataclass(frozen=True)
class SiteAccess:
    ordinal: int
    accesses: bool = False
    is_return_access: bool = False
    address_of: bool = False
    resets: bool = False


NO_ACCESS = SiteAccess(-1)


def scan_expr(expr, name):
    """
    Returns ``(accesses, address_of, resets)`` for ``name`` within ``expr``.
    ``&x.f`` and ``&x[i]`` alias ``x`` as much as ``&x`` does.
    """
    accesses = address_of = resets = False
    for node in stmt_nodes.walk_expr(expr):
        if isinstance(node, N.Name) and node.id == name:
            accesses = True
        elif isinstance(node, N.AddressOf) and stmt_nodes.base_name(node.operand) == name:
            address_of = True
        elif isinstance(node, N.Move) and stmt_nodes.base_name(node.operand) == name:
            resets = True
    return accesses, address_of, resets


def scan_site(site, name):
    accesses = address_of = resets = False
    for expr in site.exprs:
        a, b, c = scan_expr(expr, name)
        accesses, address_of, resets = accesses or a, address_of or b, resets or c
    if not (accesses or address_of or resets):
        return None
    return SiteAccess(
        ordinal=site.ordinal,
        accesses=accesses,
        is_return_access=accesses and site.in_return,
        address_of=address_of,
        resets=resets,
    )


class AccessScan:
    """Annotated view of a CFG for one binding"""

    def __init__(self, cfg, binding):
        self.cfg = cfg
        self.binding = N.as_binding(binding)
        self.records = {}
        for site in cfg.sites:
            record = scan_site(site, self.binding.name)
            if record is not None:
                self.records[site.ordinal] = record

    def __getitem__(self, ordinal):
        return self.records.get(ordinal, NO_ACCESS)

    def accesses(self, ordinal):
        return self[ordinal].accesses

    def accessing_sites(self):
        return sorted(o for o, r in self.records.items() if r.accesses)

    def return_accesses(self):
        return sorted(o for o, r in self.records.items() if r.is_return_access)

    def address_of_sites(self):
        return sorted(o for o, r in self.records.items() if r.address_of)

    def reset_sites(self):
        return sorted(o for o, r in self.records.items() if r.resets)


def scan(cfg, binding):
    return AccessScan(cfg, binding)
