from docfacade.core.base.facade_base import FacadeABC, FacadeABCMeta, FacadeBase, FacadeMeta

__all__ = ["FacadeABC", "FacadeABCMeta", "FacadeBase", "FacadeMeta"]
