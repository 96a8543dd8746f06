from .utils import get_from_dict
