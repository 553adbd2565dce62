from decimal import Decimal

# Integer columns are 32-bit on PostgreSQL.
MAX_QUANTITY = 2_147_483_647

# Money columns are Numeric(12, 2).
MONEY_MAX_DIGITS = 12
MONEY_DECIMAL_PLACES = 2
MAX_MONEY = Decimal("9999999999.99")
