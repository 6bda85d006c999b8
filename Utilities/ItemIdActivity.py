import MacroConfig
from ActivityLoop import (
    Activity,
    JournalRule,
    NOT_CERTAIN,
    READY,
    SUCCESS,
    TARGET_FAILED,
    wait_for,
)

"""
Item Identification trainer.

Finds one container on the ground at the player's tile (pouch, backpack, bag,
wooden box or paragon chest), opens it and runs Item Identification on every
non-container item inside, retrying an item while the journal says
"You are not certain".
"""

CONTAINER_GRAPHICS = {
    "Pouch": 0x0E79,
    "Backpack": 0x0E75,
    "Bag": 0x0E76,
    "WoodenBox": 0x0E7D,
    "ParagonChestLeft": 0x9FF9,
    "ParagonChestRight": 0x9FF8,
}

DEFAULTS = {
    "container_graphics": list(CONTAINER_GRAPHICS.values()),
    "container_range": 0,  # 0 = same tile as the player.
    "item_id_delay_ms": 900,
    "loop_delay_ms": 100,
    "open_delay_ms": 500,
    "target_timeout_ms": 3000,
    "message_hue": 69,
}
ItemIdConfig = MacroConfig.config_type("ItemIdConfig", DEFAULTS)

SKILL_NAME = "Item Identification"

RULES = [
    JournalRule(NOT_CERTAIN, ["You are not certain"]),
]

MESSAGES = {
    "no_container": "No container found with graphics: {graphics}",
    "no_items": "No valid items found after filtering!",
    "start": "Starting to identify items in container...",
    "finished": "Finished identifying {count} items!",
    "identifying": "Identifying item: {name}",
    NOT_CERTAIN: "Not certain, trying again...",
    SUCCESS: "Identified: {detail}",
    TARGET_FAILED: "Failed to use Item Identification! No targeting cursor.",
}


def _tile_distance(api, item):
    try:
        dx = abs(int(getattr(item, "X", 0)) - int(api.Player.X))
        dy = abs(int(getattr(item, "Y", 0)) - int(api.Player.Y))
    except Exception:
        return 999
    return max(dx, dy)


def _item_name(item):
    return str(getattr(item, "Name", "") or "Unknown")


class ItemIdActivity(Activity):
    name = "ItemIdTrainer"
    messages = MESSAGES
    retarget_outcomes = ()
    depleted_outcomes = ()
    default_outcome = SUCCESS

    def __init__(self, config):
        Activity.__init__(self, config)
        self.hue = int(config.message_hue)
        self.container = None
        self.queue = []
        self.count = 0

    def rules(self, loop):
        return RULES

    def find_container(self, loop):
        api = loop.api
        graphics = [int(g) for g in self.config.container_graphics]
        try:
            items = api.GetItemsOnGround(int(self.config.container_range)) or []
        except Exception:
            items = []
        for item in items:
            if int(getattr(item, "Graphic", 0) or 0) not in graphics:
                continue
            if not bool(getattr(item, "IsContainer", True)):
                continue
            if _tile_distance(api, item) > int(self.config.container_range):
                continue
            loop.log.debug(
                f"Found container: Serial = 0x{int(item.Serial):08X}, Name = {_item_name(item)}, "
                f"Graphic = 0x{int(item.Graphic):04X}"
            )
            return item
        return None

    def container_items(self, loop, container):
        """Non-container items whose root container is `container`.

        Nested containers, the container itself and the player are skipped;
        every decision is written to the debug log.
        """
        api = loop.api
        graphics = [int(g) for g in self.config.container_graphics]
        serial = int(container.Serial)
        player_serial = int(getattr(api.Player, "Serial", 0) or 0)
        found = api.ItemsInContainer(serial, True) or []
        loop.log.debug(f"Found {len(found)} items in container")
        valid = []
        for item in found:
            item_serial = int(getattr(item, "Serial", 0) or 0)
            is_container = bool(getattr(item, "IsContainer", False))
            is_container_graphic = int(getattr(item, "Graphic", 0) or 0) in graphics
            root = int(getattr(item, "RootContainer", serial) or 0)
            if (
                not is_container
                and not is_container_graphic
                and root == serial
                and item_serial not in (serial, player_serial)
                and getattr(item, "Name", None) is not None
            ):
                loop.log.debug(f"Selected item: 0x{item_serial:08X} {_item_name(item)}")
                valid.append(item)
            else:
                loop.log.debug(
                    f"Excluded item: 0x{item_serial:08X} IsContainer={is_container} "
                    f"IsContainerGraphic={is_container_graphic} RootContainer=0x{root:08X}"
                )
        return valid

    def before_cycle(self, loop):
        if self.queue:
            return
        if self.container is not None:
            # The previous pass is done.
            loop.feedback.emit("finished", count=self.count)
            self.container = None
            loop.pause(MacroConfig.ms(self.config.loop_delay_ms))
        container = self.find_container(loop)
        if not container:
            return
        loop.api.UseObject(container.Serial)
        loop.pause(MacroConfig.ms(self.config.open_delay_ms))
        loop.feedback.emit("start")
        self.container = container
        self.count = 0
        self.queue = self.container_items(loop, container)

    def check_precondition(self, loop):
        if self.queue:
            return READY
        wait_s = MacroConfig.ms(self.config.loop_delay_ms)
        if self.container is None:
            graphics = ", ".join(f"0x{int(g):04X}" for g in self.config.container_graphics)
            return wait_for("no_container", wait_s, graphics=graphics)
        return wait_for("no_items", wait_s)

    def dispatch(self, loop):
        api = loop.api
        item = self.queue[0]
        loop.state.detail = _item_name(item)
        loop.feedback.emit("identifying", name=loop.state.detail)
        api.UseSkill(SKILL_NAME)
        if not api.WaitForTarget("any", MacroConfig.ms(self.config.target_timeout_ms)):
            return TARGET_FAILED
        api.Target(item.Serial)
        return None

    def settle_seconds(self, loop):
        return MacroConfig.ms(self.config.item_id_delay_ms)

    def on_outcome(self, loop, outcome):
        if outcome == NOT_CERTAIN:
            return
        item = self.queue.pop(0)
        if outcome == SUCCESS:
            self.count += 1
        else:
            loop.log.warn(f"Skipped {_item_name(item)}.")
