from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


# Storefront clients speak camelCase JSON; Python code uses snake_case attributes
class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
