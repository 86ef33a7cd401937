import pytest

from pos_sync.modules.pos.enums.pos_enums import EntityKind
from pos_sync.modules.pos.exceptions import EntityNotFoundError

from .factories import (
    OTHER_SHOP_ID,
    assign_group,
    make_category,
    make_modifier_group,
    make_product,
    make_subproduct,
)


class TestSQLAlchemyDocumentRepository:
    def test_find_is_scoped_to_the_shop(self, db_session, repository):
        make_category(db_session, "Mine")
        make_category(db_session, "Theirs", shop_id=OTHER_SHOP_ID)

        assert [c["name"] for c in repository.find(EntityKind.CATEGORY)] == ["Mine"]

    def test_find_by_id_ignores_other_shops(self, db_session, repository):
        theirs = make_category(db_session, "Theirs", shop_id=OTHER_SHOP_ID)

        assert repository.find_by_id(EntityKind.CATEGORY, theirs.id) is None

    def test_find_with_filters(self, db_session, repository):
        make_category(db_session, "Linked", remote_ref=7)
        make_category(db_session, "Unlinked")

        found = repository.find(EntityKind.CATEGORY, {"remote_ref": 7})

        assert [c["name"] for c in found] == ["Linked"]

    def test_product_document_carries_categories_and_groups(self, db_session, repository):
        snacks = make_category(db_session, "Snacks", remote_ref=11)
        product = make_product(db_session, "Burger", categories=[snacks])
        cheese = make_subproduct(db_session, "Cheese")
        group = make_modifier_group(db_session, "Extras", subproducts=[cheese])
        assign_group(db_session, product, group, slot=3)

        document = repository.find_by_id(EntityKind.PRODUCT, product.id)

        assert document["categories"] == [
            {"id": snacks.id, "name": "Snacks", "remote_ref": 11}
        ]
        assert document["modifier_groups"][0]["slot"] == 3
        assert document["modifier_groups"][0]["group"]["subproduct_ids"] == [cheese.id]

    def test_create_sets_shop_and_links_categories(self, db_session, repository):
        snacks = make_category(db_session, "Snacks")

        product_id = repository.create(EntityKind.PRODUCT, {
            "name": "Cola", "price": 2.5, "remote_ref": 90, "modtime": 3,
            "category_ids": [snacks.id],
        })

        document = repository.find_by_id(EntityKind.PRODUCT, product_id)
        assert document["remote_ref"] == 90
        assert [c["name"] for c in document["categories"]] == ["Snacks"]

    def test_update_writes_fields(self, db_session, repository):
        category = make_category(db_session, "Snacks")

        repository.update(EntityKind.CATEGORY, category.id, {"remote_ref": 5, "modtime": 8})

        document = repository.find_by_id(EntityKind.CATEGORY, category.id)
        assert (document["remote_ref"], document["modtime"]) == (5, 8)

    def test_update_unknown_entity_raises(self, repository):
        with pytest.raises(EntityNotFoundError):
            repository.update(EntityKind.CATEGORY, 404, {"name": "x"})

    @pytest.mark.parametrize("field", ["shop_id", "id", "colour"])
    def test_rejects_protected_or_unknown_fields(self, db_session, repository, field):
        category = make_category(db_session, "Snacks")

        with pytest.raises(ValueError):
            repository.update(EntityKind.CATEGORY, category.id, {field: 3})

    def test_update_cannot_reach_another_shop(self, db_session, repository):
        theirs = make_category(db_session, "Theirs", shop_id=OTHER_SHOP_ID)

        with pytest.raises(EntityNotFoundError):
            repository.update(EntityKind.CATEGORY, theirs.id, {"remote_ref": 1})
