from orderdesk.catalogue.menu import MENU, get_menu_item, list_menu


class TestMenuCatalogue:
    def test_menu_has_six_dishes(self):
        assert len(list_menu()) == 6

    def test_lookup_by_id(self):
        item = get_menu_item(1)
        assert item.name == "Hyderabadi Dum Biryani"
        assert item.price == 349

    def test_unknown_id_returns_none(self):
        assert get_menu_item(99) is None

    def test_vegetable_biryani_is_vegan(self):
        item = get_menu_item(6)
        assert item.is_vegetarian
        assert item.is_vegan

    def test_ids_are_unique(self):
        assert len({item.id for item in MENU}) == len(MENU)

    def test_to_dict_carries_nutrition(self):
        data = get_menu_item(3).to_dict()
        assert data["calories"] == 520
        assert data["protein"] == 32
