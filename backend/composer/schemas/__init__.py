from .primitives import Position, ElementStyle, CellStyle, TableStyle, PageConfig, new_id
from .table import Cell, Row, TableData, default_table
from .element import Element, ElementKind, TextElement, VariableElement, ImageElement, TableElement, LineElement, SpacerElement
from .template import Page, Template, TEMPLATE_CATEGORIES
from .context import DataContext, ProposalData, ClientData, ServiceLine, CompanyData
from .variable import VariableCategory, VariableDefinition, VariableGroup
from .document_template import DocumentTemplate, DocumentTemplateCreate, DocumentTemplateUpdate, DocumentTemplateSummary, RenderRequest
