"""
Tests for the author service.
"""

import pytest
from bson import ObjectId

from catalog.exceptions import BusinessRuleConflict, MalformedIdentifier, NotFound
from catalog.models import AuthorCreate, AuthorUpdate, BookCreate


class TestAuthorService:
    """Test cases for AuthorService."""

    @pytest.mark.asyncio
    async def test_create_assigns_id_and_timestamps(self, author_service, author_payload):
        author = await author_service.create(AuthorCreate.model_validate(author_payload))

        assert ObjectId.is_valid(author.id)
        assert author.first_name == "John"
        assert author.last_name == "Doe"
        assert author.bio == "Writes things"
        assert author.birth_date.year == 1970
        assert author.created_at is not None
        assert author.created_at == author.updated_at

    @pytest.mark.asyncio
    async def test_create_then_find_one_round_trip(self, author_service, author_payload):
        created = await author_service.create(AuthorCreate.model_validate(author_payload))

        found = await author_service.find_one(created.id)

        assert found == created

    @pytest.mark.asyncio
    async def test_create_omits_absent_optional_fields(self, author_service, authors_collection):
        await author_service.create(AuthorCreate(first_name="Ada", last_name="Lovelace"))

        stored = authors_collection.documents[0]
        assert "bio" not in stored
        assert "birthDate" not in stored

    @pytest.mark.asyncio
    async def test_find_one_not_found(self, author_service):
        with pytest.raises(NotFound) as exc_info:
            await author_service.find_one(str(ObjectId()))
        assert exc_info.value.message == "Author not found"

    @pytest.mark.asyncio
    async def test_find_one_malformed_id(self, author_service):
        with pytest.raises(MalformedIdentifier):
            await author_service.find_one("not-an-id")

    @pytest.mark.asyncio
    async def test_find_all_paginates(self, author_service):
        for i in range(7):
            await author_service.create(AuthorCreate(first_name=f"First{i}", last_name=f"Last{i}"))

        page = await author_service.find_all(page=1, limit=5)

        assert len(page.docs) == 5
        assert page.total_docs == 7
        assert page.total_pages == 2
        assert page.has_next_page is True
        assert page.has_prev_page is False
        assert page.next_page == 2
        assert [a.first_name for a in page.docs] == [f"First{i}" for i in range(5)]

        second = await author_service.find_all(page=2, limit=5)
        assert [a.first_name for a in second.docs] == ["First5", "First6"]
        assert second.has_next_page is False
        assert second.has_prev_page is True
        assert second.paging_counter == 6

    @pytest.mark.asyncio
    async def test_find_all_search_is_case_insensitive_substring(self, author_service):
        await author_service.create(AuthorCreate(first_name="John", last_name="Doe"))
        await author_service.create(AuthorCreate(first_name="Mary", last_name="Johnson"))
        await author_service.create(AuthorCreate(first_name="Ada", last_name="Lovelace"))

        page = await author_service.find_all(search="john")

        assert page.total_docs == 2
        assert {a.first_name for a in page.docs} == {"John", "Mary"}

    @pytest.mark.asyncio
    async def test_find_all_search_treats_text_literally(self, author_service):
        await author_service.create(AuthorCreate(first_name="J.R.R.", last_name="Tolkien"))
        await author_service.create(AuthorCreate(first_name="Jarr", last_name="Smith"))

        page = await author_service.find_all(search="J.R")

        assert [a.last_name for a in page.docs] == ["Tolkien"]

    @pytest.mark.asyncio
    async def test_find_all_no_match(self, author_service):
        await author_service.create(AuthorCreate(first_name="John", last_name="Doe"))

        page = await author_service.find_all(search="zzz")

        assert page.docs == []
        assert page.total_docs == 0
        assert page.total_pages == 1

    @pytest.mark.asyncio
    async def test_update_applies_only_provided_fields(self, author_service, author_payload):
        created = await author_service.create(AuthorCreate.model_validate(author_payload))

        updated = await author_service.update(created.id, AuthorUpdate(bio="New bio"))

        assert updated.bio == "New bio"
        assert updated.first_name == "John"
        assert updated.last_name == "Doe"
        assert updated.updated_at >= created.updated_at

    @pytest.mark.asyncio
    async def test_update_not_found(self, author_service):
        with pytest.raises(NotFound):
            await author_service.update(str(ObjectId()), AuthorUpdate(bio="x"))

    @pytest.mark.asyncio
    async def test_remove_without_books(self, author_service):
        created = await author_service.create(AuthorCreate(first_name="John", last_name="Doe"))

        await author_service.remove(created.id)

        with pytest.raises(NotFound):
            await author_service.find_one(created.id)

    @pytest.mark.asyncio
    async def test_remove_not_found(self, author_service):
        with pytest.raises(NotFound):
            await author_service.remove(str(ObjectId()))

    @pytest.mark.asyncio
    async def test_remove_with_books_is_refused(self, author_service, book_service, book_payload):
        author = await author_service.create(AuthorCreate(first_name="John", last_name="Doe"))
        await book_service.create(BookCreate.model_validate({**book_payload, "authorId": author.id}))

        with pytest.raises(BusinessRuleConflict) as exc_info:
            await author_service.remove(author.id)

        assert exc_info.value.message == "Cannot delete author with existing books"
        assert (await author_service.find_one(author.id)).id == author.id
