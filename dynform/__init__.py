from dynform.config import load_dotenv_if_needed

load_dotenv_if_needed()

from dynform.errors import SchemaError, UnsupportedFieldKind  # noqa: E402
from dynform.schema import LayoutSchema, parse_layout  # noqa: E402
from dynform.session import FormSession  # noqa: E402
from dynform.validators import ValidationReport, validate_page  # noqa: E402

__all__ = [
	"FormSession",
	"LayoutSchema",
	"SchemaError",
	"UnsupportedFieldKind",
	"ValidationReport",
	"parse_layout",
	"validate_page",
]
