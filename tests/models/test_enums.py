from restaurant_ops.models.enums import (
    ACTIVE_STATUSES,
    ALLERGEN_DISPLAY_NAMES,
    CATEGORY_DISPLAY_NAMES,
    DIETARY_TAG_DISPLAY_NAMES,
    Allergen,
    DietaryTag,
    MenuCategory,
    ReservationStatus,
)


class TestReservationStatus:
    def test_values(self):
        assert {s.value for s in ReservationStatus} == {
            "pending", "confirmed", "cancelled", "completed", "no-show",
        }

    def test_no_show_uses_hyphen(self):
        assert ReservationStatus("no-show") is ReservationStatus.NO_SHOW

    def test_active_statuses(self):
        assert ACTIVE_STATUSES == {ReservationStatus.PENDING, ReservationStatus.CONFIRMED}

    def test_outcome_states_are_not_active(self):
        for status in (
            ReservationStatus.CANCELLED,
            ReservationStatus.COMPLETED,
            ReservationStatus.NO_SHOW,
        ):
            assert status not in ACTIVE_STATUSES


class TestDisplayNames:
    def test_every_category_has_display_name(self):
        assert set(CATEGORY_DISPLAY_NAMES) == set(MenuCategory)

    def test_every_allergen_has_display_name(self):
        assert set(ALLERGEN_DISPLAY_NAMES) == set(Allergen)

    def test_every_dietary_tag_has_display_name(self):
        assert set(DIETARY_TAG_DISPLAY_NAMES) == set(DietaryTag)

    def test_main_course_label(self):
        assert CATEGORY_DISPLAY_NAMES[MenuCategory.MAIN] == "Main Courses"

    def test_lookup_by_plain_string(self):
        assert ALLERGEN_DISPLAY_NAMES.get("nuts") == "Tree Nuts"
