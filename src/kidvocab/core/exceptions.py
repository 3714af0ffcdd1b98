"""
Domain errors raised by the progress core
"""


class KidVocabError(Exception):
    """Base class for all domain errors"""


class NotFoundError(KidVocabError):
    """A referenced account, learner or catalog item does not exist"""


class OwnershipError(KidVocabError):
    """An operation targets an entity owned by a different account"""


class EmptyCatalogError(KidVocabError):
    """Plan generation found no eligible catalog items"""
