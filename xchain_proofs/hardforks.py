"""
XChain Proofs - Hardfork Rule Sets
Consensus-rule configuration: a hardfork baseline plus chain-specific EIPs.

Chains are described by data (hardfork label + extra EIP numbers in the
registry); `derive_rule_set` turns that data into the set of active EIPs the
header serializer consults.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from .exceptions import RuleSetError, UnknownHardfork

# Hardforks in activation order, with the EIPs each one switches on
HARDFORK_EIPS: dict[str, tuple[int, ...]] = {
    "chainstart": (),
    "homestead": (606,),
    "dao": (),
    "tangerineWhistle": (608,),
    "spuriousDragon": (607,),
    "byzantium": (609,),
    "constantinople": (1013,),
    "petersburg": (1716,),
    "istanbul": (1679,),
    "muirGlacier": (2384,),
    "berlin": (2565, 2718, 2929, 2930),
    "london": (1559, 3198, 3529, 3541),
    "arrowGlacier": (4345,),
    "grayGlacier": (5133,),
    "mergeForkIdTransition": (),
    "paris": (3675, 4399),
    "shanghai": (3651, 3855, 3860, 4895),
    "cancun": (1153, 4788, 4844, 5656, 6780, 7516),
    "prague": (2537, 2935, 6110, 7002, 7251, 7623, 7685, 7691, 7702),
}

HARDFORK_ORDER: tuple[str, ...] = tuple(HARDFORK_EIPS)

# Common aliases for the same rule versions
HARDFORK_ALIASES = {
    "frontier": "chainstart",
    "merge": "paris",
}

# EIPs that may be layered on top of a baseline, with the EIPs they depend on
EIP_REQUIREMENTS: dict[int, tuple[int, ...]] = {
    1153: (),
    1559: (2718, 2930),
    2537: (),
    2935: (),
    3198: (1559,),
    3651: (),
    3855: (),
    3860: (),
    4788: (1559,),
    4844: (1559, 2718, 2930, 4895),
    4895: (),
    5656: (),
    6110: (7685,),
    6780: (),
    7002: (7685,),
    7516: (4844,),
    7685: (),
    7702: (2718, 2929, 2930),
}


@dataclass(frozen=True)
class RuleSet:
    """Hardfork baseline and the full set of EIPs active on top of it."""

    hardfork: str
    eips: frozenset[int]

    def is_activated(self, eip: int) -> bool:
        return eip in self.eips


def canonical_hardfork(name: Optional[str]) -> str:
    """
    Resolve a hardfork label (case-insensitive, aliases allowed).

    Raises:
        UnknownHardfork: If the label is empty or not a known hardfork
    """
    if not name:
        raise UnknownHardfork(name)
    lowered = name.strip().lower()
    lowered = HARDFORK_ALIASES.get(lowered, lowered)
    for hardfork in HARDFORK_ORDER:
        if hardfork.lower() == lowered:
            return hardfork
    raise UnknownHardfork(name)


def derive_rule_set(baseline: Optional[str], extra_eips: Iterable[int] = ()) -> RuleSet:
    """
    Build the rule set for a chain.

    Args:
        baseline: Hardfork label the chain follows
        extra_eips: EIPs from later hardforks the chain already runs

    Returns:
        RuleSet with every EIP up to and including `baseline`, plus extras

    Raises:
        UnknownHardfork: If `baseline` is not recognised
        RuleSetError: If an extra EIP is unknown or its requirements are unmet
    """
    hardfork = canonical_hardfork(baseline)

    eips: set[int] = set()
    for name in HARDFORK_ORDER[: HARDFORK_ORDER.index(hardfork) + 1]:
        eips.update(HARDFORK_EIPS[name])

    extras = [int(eip) for eip in extra_eips]
    for eip in extras:
        if eip not in EIP_REQUIREMENTS:
            raise RuleSetError(f"EIP-{eip} is not supported as a custom EIP")
    eips.update(extras)

    for eip in extras:
        missing = [req for req in EIP_REQUIREMENTS[eip] if req not in eips]
        if missing:
            raise RuleSetError(
                f"EIP-{eip} requires EIP(s) {', '.join(map(str, missing))} on top of {hardfork}"
            )

    return RuleSet(hardfork=hardfork, eips=frozenset(eips))
