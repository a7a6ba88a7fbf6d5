"""
csoverview - Constants

Round phases, teams, equipment classification and the fixed lifetimes that
govern how long ephemeral effects stay on the overview.
"""

from enum import Enum, IntEnum, StrEnum


class Phase(StrEnum):
    """
    Round sub-state that selects the countdown formula.

    Exactly one phase is active at any instant. WARMUP is never entered
    through a round event; it is read from the world state every frame.
    """

    WARMUP = "warmup"
    FREEZETIME = "freezetime"
    REGULAR = "regular"
    PLANTED = "planted"
    RESTART = "restart"
    HALFTIME = "halftime"


class Team(int, Enum):
    """CS2 team numbers."""

    UNASSIGNED = 0
    SPECTATOR = 1
    TERRORIST = 2
    CT = 3

    @classmethod
    def parse(cls, value) -> "Team":
        """Map a team number or side label ("CT", "T", "TERRORIST") to a Team."""
        if isinstance(value, Team):
            return value
        if isinstance(value, str):
            label = value.strip().upper()
            if label in ("CT", "COUNTER-TERRORIST", "COUNTERTERRORIST"):
                return cls.CT
            if label in ("T", "TERRORIST", "TERRORISTS"):
                return cls.TERRORIST
            if label in ("SPEC", "SPECTATOR"):
                return cls.SPECTATOR
            return cls.UNASSIGNED
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.UNASSIGNED


class EquipmentClass(IntEnum):
    """Equipment classes, one per hundred-block of EquipmentType values."""

    UNKNOWN = 0
    PISTOLS = 1
    SMG = 2
    HEAVY = 3
    RIFLE = 4
    EQUIPMENT = 5
    GRENADE = 6


class EquipmentType(IntEnum):
    """
    Weapons, grenades and equipment a player can hold or use.

    The value encodes the class: ``value // 100 + 1`` is the EquipmentClass
    (0 stays UNKNOWN). Inventories are sorted by these values.
    """

    UNKNOWN = 0

    # Pistols
    P2000 = 1
    GLOCK = 2
    P250 = 3
    DEAGLE = 4
    FIVE_SEVEN = 5
    DUAL_BERETTAS = 6
    TEC9 = 7
    CZ = 8
    USP = 9
    REVOLVER = 10

    # SMGs
    MP7 = 101
    MP9 = 102
    BIZON = 103
    MAC10 = 104
    UMP = 105
    P90 = 106
    MP5 = 107

    # Heavy
    SAWED_OFF = 201
    NOVA = 202
    MAG7 = 203
    XM1014 = 204
    M249 = 205
    NEGEV = 206

    # Rifles
    GALIL = 301
    FAMAS = 302
    AK47 = 303
    M4A4 = 304
    M4A1 = 305
    SCOUT = 306
    SG556 = 307
    AUG = 308
    AWP = 309
    SCAR20 = 310
    G3SG1 = 311

    # Equipment
    ZEUS = 401
    KEVLAR = 402
    HELMET = 403
    BOMB = 404
    KNIFE = 405
    DEFUSE_KIT = 406
    WORLD = 407

    # Grenades
    DECOY = 501
    MOLOTOV = 502
    INCENDIARY = 503
    FLASH = 504
    SMOKE = 505
    HE = 506

    @property
    def equipment_class(self) -> EquipmentClass:
        if self == EquipmentType.UNKNOWN:
            return EquipmentClass.UNKNOWN
        return EquipmentClass(self.value // 100 + 1)

    @classmethod
    def from_name(cls, name: str | None) -> "EquipmentType":
        """Resolve a decoder weapon name ("weapon_ak47", "AK-47", "flashbang")."""
        if not name:
            return cls.UNKNOWN
        key = name.strip().lower()
        if key.startswith("weapon_"):
            key = key[len("weapon_"):]
        key = key.replace(" ", "_").replace("-", "_")
        if key.startswith("knife") or key.startswith("bayonet"):
            return cls.KNIFE
        return WEAPON_NAMES.get(key, cls.UNKNOWN)


# Decoder weapon names (event names and display names, normalized to
# lowercase with "_" for spaces and dashes).
WEAPON_NAMES: dict[str, EquipmentType] = {
    # Pistols
    "hkp2000": EquipmentType.P2000,
    "p2000": EquipmentType.P2000,
    "glock": EquipmentType.GLOCK,
    "glock_18": EquipmentType.GLOCK,
    "p250": EquipmentType.P250,
    "deagle": EquipmentType.DEAGLE,
    "desert_eagle": EquipmentType.DEAGLE,
    "fiveseven": EquipmentType.FIVE_SEVEN,
    "five_seven": EquipmentType.FIVE_SEVEN,
    "elite": EquipmentType.DUAL_BERETTAS,
    "dual_berettas": EquipmentType.DUAL_BERETTAS,
    "tec9": EquipmentType.TEC9,
    "tec_9": EquipmentType.TEC9,
    "cz75a": EquipmentType.CZ,
    "cz75_auto": EquipmentType.CZ,
    "usp_silencer": EquipmentType.USP,
    "usp_s": EquipmentType.USP,
    "revolver": EquipmentType.REVOLVER,
    "r8_revolver": EquipmentType.REVOLVER,
    # SMGs
    "mp7": EquipmentType.MP7,
    "mp9": EquipmentType.MP9,
    "bizon": EquipmentType.BIZON,
    "pp_bizon": EquipmentType.BIZON,
    "mac10": EquipmentType.MAC10,
    "mac_10": EquipmentType.MAC10,
    "ump45": EquipmentType.UMP,
    "ump_45": EquipmentType.UMP,
    "p90": EquipmentType.P90,
    "mp5sd": EquipmentType.MP5,
    "mp5_sd": EquipmentType.MP5,
    # Heavy
    "sawedoff": EquipmentType.SAWED_OFF,
    "sawed_off": EquipmentType.SAWED_OFF,
    "nova": EquipmentType.NOVA,
    "mag7": EquipmentType.MAG7,
    "mag_7": EquipmentType.MAG7,
    "xm1014": EquipmentType.XM1014,
    "m249": EquipmentType.M249,
    "negev": EquipmentType.NEGEV,
    # Rifles
    "galilar": EquipmentType.GALIL,
    "galil_ar": EquipmentType.GALIL,
    "famas": EquipmentType.FAMAS,
    "ak47": EquipmentType.AK47,
    "ak_47": EquipmentType.AK47,
    "m4a1": EquipmentType.M4A4,
    "m4a4": EquipmentType.M4A4,
    "m4a1_silencer": EquipmentType.M4A1,
    "m4a1_s": EquipmentType.M4A1,
    "ssg08": EquipmentType.SCOUT,
    "ssg_08": EquipmentType.SCOUT,
    "sg556": EquipmentType.SG556,
    "sg_553": EquipmentType.SG556,
    "aug": EquipmentType.AUG,
    "awp": EquipmentType.AWP,
    "scar20": EquipmentType.SCAR20,
    "scar_20": EquipmentType.SCAR20,
    "g3sg1": EquipmentType.G3SG1,
    # Equipment
    "taser": EquipmentType.ZEUS,
    "zeus_x27": EquipmentType.ZEUS,
    "vest": EquipmentType.KEVLAR,
    "kevlar_vest": EquipmentType.KEVLAR,
    "vesthelm": EquipmentType.HELMET,
    "c4": EquipmentType.BOMB,
    "c4_explosive": EquipmentType.BOMB,
    "planted_c4": EquipmentType.BOMB,
    "defuser": EquipmentType.DEFUSE_KIT,
    "world": EquipmentType.WORLD,
    "worldspawn": EquipmentType.WORLD,
    # Grenades
    "decoy": EquipmentType.DECOY,
    "decoy_grenade": EquipmentType.DECOY,
    "molotov": EquipmentType.MOLOTOV,
    "inferno": EquipmentType.MOLOTOV,
    "incgrenade": EquipmentType.INCENDIARY,
    "incendiary_grenade": EquipmentType.INCENDIARY,
    "incendiary": EquipmentType.INCENDIARY,
    "flashbang": EquipmentType.FLASH,
    "flash": EquipmentType.FLASH,
    "smokegrenade": EquipmentType.SMOKE,
    "smoke": EquipmentType.SMOKE,
    "smoke_grenade": EquipmentType.SMOKE,
    "hegrenade": EquipmentType.HE,
    "he_grenade": EquipmentType.HE,
    "high_explosive_grenade": EquipmentType.HE,
}

# Classes that show up in a player's overview inventory
INVENTORY_CLASSES = frozenset(
    {
        EquipmentClass.PISTOLS,
        EquipmentClass.SMG,
        EquipmentClass.HEAVY,
        EquipmentClass.RIFLE,
        EquipmentClass.GRENADE,
    }
)

# Weapon-fire events from these classes leave no tracer
NON_FIRING_CLASSES = frozenset(
    {
        EquipmentClass.EQUIPMENT,
        EquipmentClass.GRENADE,
        EquipmentClass.UNKNOWN,
    }
)

# CS2 uses 64 tick universally (subtick timestamps actions between ticks)
CS2_TICK_RATE = 64

# Ephemeral effect lifetimes
FLASH_EFFECT_LIFETIME = 10  # frames
HE_EFFECT_LIFETIME = 10  # frames
SMOKE_EFFECT_SECONDS = 18  # real time, converted with the frame rate
INFERNO_BURN_SECONDS = 7  # when the demo has no inferno_expire
KILLFEED_LIFETIME_SECONDS = 10
KILLFEED_MAX_ENTRIES = 5

# mp_c4timer is often missing from demos
C4_TIMER_SECONDS = 40

# Name shown in the kill feed when killer or victim is not a player
WORLD_NAME = "World"

# Server convars read for the round timer
CONVAR_FREEZETIME = "mp_freezetime"
CONVAR_ROUNDTIME_DEFUSE = "mp_roundtime_defuse"
CONVAR_C4TIMER = "mp_c4timer"
CONVAR_RESTART_DELAY = "mp_round_restart_delay"
CONVAR_HALFTIME_DURATION = "mp_halftime_duration"
