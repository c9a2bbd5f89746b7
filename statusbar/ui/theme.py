"""
Theme - Markup colour tokens, glyphs and icon tables for the status line
"""
from typing import List


class Theme:
    """
    Colour and glyph configuration for every block.

    Colours are emitted as inline ``^c#RRGGBB^`` tokens understood by the
    status2d bar patch; the compositor passes them through untouched.
    """

    # Border
    BORDER = '#dddddd'

    # Date block
    DATE_ICON = '#07d7e8'
    DATE_TEXT = '#10bbbb'
    DAY_ICON = '#edd238'
    NIGHT_ICON = '#ecede8'
    DAY_START_HOUR = 8            # Inclusive
    NIGHT_START_HOUR = 21         # Exclusive end of day

    # Memory block
    MEMORY = '#186da5'

    # Exchange rate block
    CURRENCY = '#85bb65'

    # Placeholders
    FG_DIM = '#666666'
    BOLT = '#cccccc'

    # Glyphs (Font Awesome / Nerd Font code points)
    GLYPH_CALENDAR = '\uf073'
    GLYPH_SUN = '\uf185'
    GLYPH_MOON = '\uf186'
    GLYPH_MEMORY = '\uf2db'
    GLYPH_BOLT = '\uf0e7'
    GLYPH_DOLLAR = '\uf155'
    GLYPH_HOT = '\U000f0238'

    # Battery buckets: <10, [10,25), [25,50), [50,75), >=75
    BATTERY_THRESHOLDS: List[int] = [10, 25, 50, 75]
    BATTERY_LEVELS = [
        ('#ff0000', '\uf244'),
        ('#eb9634', '\uf243'),
        ('#ebd334', '\uf242'),
        ('#c6eb34', '\uf241'),
        ('#00ff00', '\uf240'),
    ]

    # Temperature bands (upper bound exclusive, colour, glyph)
    TEMPERATURE_BANDS = [
        (0, '#1e90ff', '\uf2cb'),     # Freezing
        (10, '#00bfff', '\uf2ca'),    # Cold
        (18, '#32cd32', '\uf2c9'),    # Cool
        (22, '#ffd700', '\uf2c8'),    # Mild
        (30, '#ffa500', '\uf2c7'),    # Warm
    ]
    TEMPERATURE_HOT = '#ff4500'

    @staticmethod
    def color(hex_color: str) -> str:
        """
        Build a colour token.

        Args:
            hex_color: Colour in ``#rrggbb`` form

        Returns:
            Markup token such as ``^c#rrggbb^``
        """
        return f"^c{hex_color}^"

    @staticmethod
    def left_border() -> str:
        """Left decoration of the composed line"""
        return f"{Theme.color(Theme.BORDER)}["

    @staticmethod
    def right_border() -> str:
        """Right decoration of the composed line"""
        return f"{Theme.color(Theme.BORDER)}]"

    @staticmethod
    def is_daytime(hour: int) -> bool:
        """Check if hour falls in the daytime range [8, 21)"""
        return Theme.DAY_START_HOUR <= hour < Theme.NIGHT_START_HOUR

    @staticmethod
    def get_daytime_icon(hour: int) -> str:
        """
        Get sun or moon icon for an hour of the day.

        Args:
            hour: Hour in 0..23

        Returns:
            Coloured glyph
        """
        if Theme.is_daytime(hour):
            return f"{Theme.color(Theme.DAY_ICON)}{Theme.GLYPH_SUN}"
        return f"{Theme.color(Theme.NIGHT_ICON)}{Theme.GLYPH_MOON}"

    @staticmethod
    def get_battery_bucket(capacity: int) -> int:
        """
        Map battery capacity percentage to an icon bucket.

        Args:
            capacity: Capacity in percent

        Returns:
            Bucket index 0..4
        """
        for index, threshold in enumerate(Theme.BATTERY_THRESHOLDS):
            if capacity < threshold:
                return index
        return len(Theme.BATTERY_THRESHOLDS)

    @staticmethod
    def get_battery_icon(bucket: int) -> str:
        """Coloured battery glyph for a bucket, padded with spaces"""
        hex_color, glyph = Theme.BATTERY_LEVELS[bucket]
        return f"{Theme.color(hex_color)} {glyph} "

    @staticmethod
    def get_bolt() -> str:
        """Charging suffix"""
        return f" {Theme.color(Theme.BOLT)}{Theme.GLYPH_BOLT}"

    @staticmethod
    def get_temperature_icon(temperature: float) -> str:
        """
        Get thermometer icon for a temperature in Celsius.

        Args:
            temperature: Temperature in °C

        Returns:
            Coloured glyph with leading space
        """
        for upper, hex_color, glyph in Theme.TEMPERATURE_BANDS:
            if temperature < upper:
                return f"{Theme.color(hex_color)} {glyph}"
        return f"{Theme.color(Theme.TEMPERATURE_HOT)} {Theme.GLYPH_HOT}"
