"""Unit tests for duplicate detection."""

from hie_interop.interop import (
    find_duplicate,
    find_duplicate_portal_patient,
    is_same_person,
)


class TestIsSamePerson:
    """Tests for the (name, birth date) equality rule."""

    def test_same_name_different_case_matches(self):
        """Test same name different case matches."""
        # Arrange & Act & Assert
        assert is_same_person("Jane Doe", "1980-01-01", "JANE DOE", "1980-01-01")

    def test_surrounding_whitespace_ignored(self):
        """Test surrounding whitespace ignored."""
        # Arrange & Act & Assert
        assert is_same_person("  Jane Doe ", "1980-01-01", "jane doe", "1980-01-01")

    def test_different_birth_date_does_not_match(self):
        """Test different birth date does not match."""
        # Arrange & Act & Assert
        assert not is_same_person("Jane Doe", "1980-01-01", "Jane Doe", "1980-01-02")

    def test_birth_date_compared_verbatim(self):
        """Test differently formatted dates are different birth dates."""
        # Arrange & Act & Assert
        assert not is_same_person("Jane Doe", "1980-01-01", "Jane Doe", "01/01/1980")

    def test_missing_birth_date_never_matches(self):
        """Test two records without birth dates are kept distinct."""
        # Arrange & Act & Assert
        assert not is_same_person("Unknown", None, "Unknown", None)
        assert not is_same_person("Jane Doe", "1980-01-01", "Jane Doe", None)

    def test_missing_birth_dates_equal_when_allowed(self):
        """Test the node rule: two absent birth dates compare equal."""
        # Arrange & Act & Assert
        assert is_same_person("John Roe", None, "john roe", "", allow_missing_birth_date=True)
        assert not is_same_person("John Roe", "1970-05-05", "John Roe", None, allow_missing_birth_date=True)

    def test_no_fuzzy_matching(self):
        """Test a one-letter typo is a different person."""
        # Arrange & Act & Assert
        assert not is_same_person("Jane Doe", "1980-01-01", "Jane Do", "1980-01-01")


class TestFindDuplicate:
    """Tests for find_duplicate over stored records."""

    def test_returns_first_match(self):
        """Test returns first match."""
        # Arrange
        records = [
            {"id": "PT-1", "name": "John Roe", "birthDate": "1970-05-05"},
            {"id": "PT-2", "name": "Jane Doe", "birthDate": "1980-01-01"},
            {"id": "PT-3", "name": "jane doe", "birthDate": "1980-01-01"},
        ]

        # Act
        duplicate = find_duplicate(records, "Jane Doe", "1980-01-01")

        # Assert
        assert duplicate["id"] == "PT-2"

    def test_returns_none_without_match(self):
        """Test returns none without match."""
        # Arrange
        records = [{"id": "PT-1", "name": "John Roe", "birthDate": "1970-05-05"}]

        # Act & Assert
        assert find_duplicate(records, "Jane Doe", "1980-01-01") is None

    def test_allow_missing_birth_date_passed_through(self):
        """Test find_duplicate forwards the missing-birth-date rule."""
        # Arrange
        records = [{"id": "PT-1", "name": "John Roe", "birthDate": None}]

        # Act & Assert
        assert find_duplicate(records, "John Roe", None) is None
        assert find_duplicate(records, "John Roe", None, allow_missing_birth_date=True)["id"] == "PT-1"

    def test_ignores_identifier(self):
        """Test uniqueness is not enforced on the id."""
        # Arrange
        records = [{"id": "PT-1", "name": "John Roe", "birthDate": "1970-05-05"}]

        # Act & Assert
        assert find_duplicate(records, "Jane Doe", "1980-01-01") is None


class TestFindDuplicatePortalPatient:
    """Tests for the portal's first/last name variant."""

    def test_matches_first_last_and_dob(self):
        """Test matches first last and dob."""
        # Arrange
        records = [{"id": "PT-A", "firstName": "Jane", "lastName": "Doe", "dateOfBirth": "1980-01-01"}]

        # Act
        duplicate = find_duplicate_portal_patient(records, "JANE", "doe", "1980-01-01")

        # Assert
        assert duplicate["id"] == "PT-A"

    def test_swapped_names_do_not_match(self):
        """Test swapped names do not match."""
        # Arrange
        records = [{"id": "PT-A", "firstName": "Jane", "lastName": "Doe", "dateOfBirth": "1980-01-01"}]

        # Act & Assert
        assert find_duplicate_portal_patient(records, "Doe", "Jane", "1980-01-01") is None
