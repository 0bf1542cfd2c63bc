import pytest

from dispatchdesk.services.phone import (
    normalize_phone,
    resolve_lead,
    resolve_lead_id,
    build_dial_uri,
)


class TestNormalizePhone:

    def test_strips_punctuation_and_country_code(self):
        assert normalize_phone("+1 (214) 555-0100") == "2145550100"
        assert normalize_phone("2145550100") == "2145550100"

    def test_keeps_last_ten_digits(self):
        assert normalize_phone("0044 20 7946 0958 12") == "7946095812"

    def test_too_few_digits(self):
        assert normalize_phone("123") is None
        assert normalize_phone("12-34") is None
        assert normalize_phone("") is None
        assert normalize_phone(None) is None

    def test_five_digits_is_enough(self):
        assert normalize_phone("5-0100") == "50100"


class TestDialUri:

    def test_ten_digits_get_us_country_code(self):
        assert build_dial_uri("(214) 555-0100") == "tel:+12145550100"

    def test_other_lengths_get_plus(self):
        assert build_dial_uri("1 214 555 0100") == "tel:+12145550100"
        assert build_dial_uri("44 20 7946 0958") == "tel:+442079460958"

    def test_no_digits(self):
        assert build_dial_uri("ext") is None
        assert build_dial_uri(None) is None


class TestResolveLead:

    @pytest.mark.asyncio
    async def test_formatted_and_bare_numbers_match_same_lead(self, db, lead_factory):
        lead = await lead_factory(phone_number="+1 (214) 555-0100")

        assert await resolve_lead_id(db, "+1 (214) 555-0100") == lead.id
        assert await resolve_lead_id(db, "2145550100") == lead.id
        assert await resolve_lead_id(db, "12145550100") == lead.id

    @pytest.mark.asyncio
    async def test_short_input_never_resolves(self, db, lead_factory):
        await lead_factory(phone_number="555-000-0123")

        assert await resolve_lead_id(db, "123") is None
        assert await resolve_lead(db, "") is None

    @pytest.mark.asyncio
    async def test_unknown_number(self, db, lead_factory):
        await lead_factory(phone_number="214-555-0100")

        assert await resolve_lead_id(db, "972-555-0199") is None

    @pytest.mark.asyncio
    async def test_ambiguous_match_picks_lowest_id(self, db, lead_factory):
        first = await lead_factory(company_name="First", phone_number="214-555-0100")
        await lead_factory(company_name="Second", phone_number="1-214-555-0100")

        assert await resolve_lead_id(db, "2145550100") == first.id

    @pytest.mark.asyncio
    async def test_phone_digits_follow_phone_updates(self, db, lead_factory):
        lead = await lead_factory(phone_number="214-555-0100")
        lead.phone_number = "(469) 555-0111"
        await db.commit()

        assert await resolve_lead_id(db, "4695550111") == lead.id
        assert await resolve_lead_id(db, "2145550100") is None
