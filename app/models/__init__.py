from app.models.user import User
from app.models.revoked_token import RevokedToken
from app.models.product import Product
from app.models.inventory import InventoryMovement
from app.models.customer import Customer
from app.models.sales_order import SalesOrder, SalesOrderItem
from app.models.system_setting import SystemSetting
