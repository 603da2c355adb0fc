# commerce_erp/business_logic/__init__.py
# Managers are imported from their own modules; they depend on data_access,
# which in turn imports the entities of this package.
from .exceptions import ErpError, ValidationError, PreconditionFailed, NotFoundError
