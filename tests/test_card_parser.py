"""Unit tests for reading expanded card HTML."""
from mysideline_sync.card_parser import parse_card_html, split_address

CARD_HTML = """
<div class="el-card__body">
  <div class="image__wrapper"><img data-url="https://cdn.mysideline.com.au/logo/123.png" src="placeholder.png"></div>
  <h3 class="title">NSW Masters Rugby League Carnival (15/09/2099)</h3>
  <h4 class="subtitle">Masters Rugby League</h4>
  <div class="click-expand">More</div>
  <a href="https://maps.google.com/?q=Sydney+Sports+Complex">
    <p class="m-0">Sydney Sports Complex</p>
    <p class="m-0">1 Stadium Drive</p>
    <p class="m-0">Homebush NSW 2140</p>
    <p class="m-0">Australia</p>
  </a>
  <p>Annual Masters carnival for over 35s, 40s and 45s divisions.</p>
  <p>Club Contact Name: Jane Citizen
     Number: <a href="tel:0412345678">0412 345 678</a>
     Email: <a href="mailto:jane@nswmasters.com.au">jane@nswmasters.com.au</a>
     <a href="https://facebook.com/nswmasters">Facebook</a>
     <a href="https://nswmasters.com.au">Website</a>
  </p>
  <div class="item"><span class="list-item">Type</span><span class="right">League</span></div>
  <button id="cardButton" class="el-button el-button--primary" data-url="https://profile.mysideline.com.au/register/abc">Register</button>
</div>
"""


class TestParseCardHtml:
    """Tests for parse_card_html."""

    def test_reads_all_fields(self):
        fields = parse_card_html(CARD_HTML)

        assert fields.icon_url == "https://cdn.mysideline.com.au/logo/123.png"
        assert fields.title == "NSW Masters Rugby League Carnival (15/09/2099)"
        assert fields.subtitle == "Masters Rugby League"
        assert fields.google_maps_url == "https://maps.google.com/?q=Sydney+Sports+Complex"
        assert fields.address_lines == [
            "Sydney Sports Complex", "1 Stadium Drive", "Homebush NSW 2140", "Australia",
        ]
        assert fields.location_address.startswith("Sydney Sports Complex, 1 Stadium Drive")
        assert fields.description.startswith("Annual Masters carnival")
        assert fields.contact_name == "Jane Citizen"
        assert fields.contact_phone == "0412 345 678"
        assert fields.contact_email == "jane@nswmasters.com.au"
        assert fields.contact_facebook == "https://facebook.com/nswmasters"
        assert fields.contact_website == "https://nswmasters.com.au"
        assert fields.event_type == "League"

    def test_reports_registration_button_attributes(self):
        fields = parse_card_html(CARD_HTML)
        assert fields.has_registration_button is True
        assert {"data-url": "https://profile.mysideline.com.au/register/abc"} in fields.button_attributes

    def test_empty_card(self):
        fields = parse_card_html("<div></div>")
        assert fields.title is None
        assert fields.address_lines == []
        assert fields.location_address == ""
        assert fields.has_registration_button is False
        assert fields.button_attributes == []

    def test_touch_type_is_read(self):
        html = '<div class="item"><div class="list-item">Type</div><div class="right">Touch</div></div>'
        assert parse_card_html(html).event_type == "Touch"


class TestSplitAddress:
    """Tests for split_address."""

    def test_full_postal_address(self):
        parts = split_address(["Sydney Sports Complex", "1 Stadium Drive", "Homebush NSW 2140", "Australia"])
        assert parts == {
            "venue_name": "Sydney Sports Complex",
            "location_suburb": "Homebush",
            "location_postcode": "2140",
            "location_country": "Australia",
        }

    def test_single_line(self):
        parts = split_address(["Sydney Sports Complex, NSW"])
        assert parts["venue_name"] is None
        assert parts["location_suburb"] is None
