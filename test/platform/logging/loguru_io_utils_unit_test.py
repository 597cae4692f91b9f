import pytest

from restaurant_booking.platform.logging.loguru_io_config import MASK, MAX_CONTENT_LENGTH
from restaurant_booking.platform.logging.loguru_io_utils import mask_sensitive, truncate_content


@pytest.mark.unit
class TestMaskSensitive:
    def test_dict_keys(self) -> None:
        assert mask_sensitive({'password': 'hunter2', 'resource_id': 'resource_1'}) == {
            'password': MASK,
            'resource_id': 'resource_1',
        }

    def test_nested_structures(self) -> None:
        masked = mask_sensitive([{'token': 'abc'}, ('secret', 'plain')])

        assert masked == [{'token': MASK}, ('secret', 'plain')]

    def test_key_value_text(self) -> None:
        assert mask_sensitive("connect(password='hunter2', host=db)") == (
            f"connect(password='{MASK}', host=db)"
        )

    def test_dsn_style_text(self) -> None:
        assert mask_sensitive('POSTGRES_PASSWORD=booking_pass') == f'POSTGRES_PASSWORD={MASK}'

    def test_untouched_values_keep_their_type(self) -> None:
        assert mask_sensitive(4) == 4


@pytest.mark.unit
def test_truncate_content() -> None:
    text = 'x' * (MAX_CONTENT_LENGTH + 5)

    truncated = truncate_content(text)

    assert truncated.startswith('x' * MAX_CONTENT_LENGTH)
    assert truncated.endswith('(truncated 5 chars)')
    assert truncate_content('short') == 'short'
