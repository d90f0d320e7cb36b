from visacheck.config.visa_data import get_all_countries, get_country, get_visa_type


class TestVisaData:
    def test_catalogue_contains_all_countries(self) -> None:
        codes = [c.code for c in get_all_countries()]
        assert codes == ["IE", "PL", "FR", "NL", "DE", "US"]

    def test_h1b_has_six_documents(self) -> None:
        visa_type = get_visa_type("US", "H1B")
        assert visa_type is not None
        assert len(visa_type.required_documents) == 6
        assert visa_type.required_documents[-1].required is False

    def test_lookup_is_case_insensitive(self) -> None:
        assert get_visa_type("us", "h1b") is get_visa_type("US", "H1B")
        country = get_country("de")
        assert country is not None
        assert country.name == "Germany"

    def test_unknown_country_returns_none(self) -> None:
        assert get_country("XX") is None
        assert get_visa_type("XX", "H1B") is None

    def test_unknown_visa_type_returns_none(self) -> None:
        assert get_visa_type("US", "EB5") is None

    def test_every_visa_type_has_documents(self) -> None:
        for country in get_all_countries():
            for visa_type in country.visa_types:
                assert visa_type.required_documents, visa_type.code
