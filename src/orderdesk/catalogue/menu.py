"""Read-only menu catalogue.

The storefront owns the menu; the order lifecycle only needs to resolve an
item id into a name and a price at the moment a line enters a cart.
"""

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class MenuItem:
    id: int
    name: str
    price: float
    description: str = ""
    spicy: int = 0
    rating: float = 0.0
    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    fiber: float = 0
    is_vegetarian: bool = False
    is_vegan: bool = False
    is_gluten_free: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


MENU: tuple[MenuItem, ...] = (
    MenuItem(
        id=1,
        name="Hyderabadi Dum Biryani",
        description="Aromatic basmati rice layered with tender marinated meat, slow-cooked to perfection",
        price=349,
        spicy=3,
        rating=4.9,
        calories=450,
        protein=28,
        carbs=52,
        fat=12,
        fiber=2,
    ),
    MenuItem(
        id=2,
        name="Chicken Tikka Biryani",
        description="Smoky grilled chicken tikka pieces mixed with fragrant saffron rice",
        price=299,
        spicy=2,
        rating=4.8,
        calories=420,
        protein=30,
        carbs=48,
        fat=10,
        fiber=1.5,
    ),
    MenuItem(
        id=3,
        name="Mutton Dum Biryani",
        description="Premium mutton marinated in yogurt and spices, cooked with aged basmati",
        price=399,
        spicy=3,
        rating=4.9,
        calories=520,
        protein=32,
        carbs=50,
        fat=18,
        fiber=2,
    ),
    MenuItem(
        id=4,
        name="Paneer Biryani",
        description="Cottage cheese cubes with aromatic rice, perfect for vegetarian lovers",
        price=249,
        spicy=2,
        rating=4.7,
        calories=420,
        protein=18,
        carbs=54,
        fat=14,
        fiber=3,
        is_vegetarian=True,
    ),
    MenuItem(
        id=5,
        name="Prawn Biryani",
        description="Succulent prawns cooked with coastal spices and premium rice",
        price=449,
        spicy=3,
        rating=4.8,
        calories=480,
        protein=35,
        carbs=46,
        fat=15,
        fiber=2,
    ),
    MenuItem(
        id=6,
        name="Vegetable Biryani",
        description="Mixed vegetables with aromatic herbs and basmati rice",
        price=199,
        spicy=1,
        rating=4.6,
        calories=380,
        protein=12,
        carbs=56,
        fat=10,
        fiber=5,
        is_vegetarian=True,
        is_vegan=True,
    ),
)

_BY_ID = {item.id: item for item in MENU}


def list_menu() -> list[MenuItem]:
    return list(MENU)


def get_menu_item(item_id: int) -> MenuItem | None:
    """Return the catalogue entry for ``item_id`` or None."""
    return _BY_ID.get(item_id)
