# hidden_meaning/db/base.py
# Import all the models, so that Base has them before create_all() is called
from hidden_meaning.db.base_class import Base
from hidden_meaning.schemas.play import Play
from hidden_meaning.schemas.system import SystemAlert
