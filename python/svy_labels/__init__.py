from .attrs import (
    ATTR_NAMES,
    from_attrs,
    to_attrs,
    value_label_attribute,
    variable_label_attribute,
)
from .convert import as_label, as_labelled, as_numeric
from .frame import LabelledFrame
from .getters import get_label, get_labels, get_na, get_values
from .labelled import (
    Labelled,
    LabelledSPSS,
    is_labelled,
    is_labelled_spss,
    labelled,
    labelled_spss,
)
from .sas import read_sas, read_sas7bdat, read_xpt, write_xpt
from .setters import (
    add_labels,
    copy_labels,
    drop_labels,
    fill_labels,
    remove_labels,
    set_label,
    set_labels,
    set_na,
)
from .spss import read_por, read_sav, read_spss, write_spss
from .stata import read_dta, read_stata, write_dta, write_stata
from .tagged_na import (
    TaggedNA,
    format_tagged_na,
    is_tagged_na,
    na_tag,
    tagged_na,
)
from .zap import (
    remove_all_labels,
    zap_label,
    zap_labels,
    zap_missing,
    zap_na_tags,
    zap_unlabelled,
)


__all__ = [
    "add_labels",
    "as_label",
    "as_labelled",
    "as_numeric",
    "ATTR_NAMES",
    "copy_labels",
    "drop_labels",
    "fill_labels",
    "format_tagged_na",
    "from_attrs",
    "get_label",
    "get_labels",
    "get_na",
    "get_values",
    "Labelled",
    "LabelledFrame",
    "LabelledSPSS",
    "labelled",
    "labelled_spss",
    "is_labelled",
    "is_labelled_spss",
    "is_tagged_na",
    "na_tag",
    "read_dta",
    "read_por",
    "read_sas",
    "read_sas7bdat",
    "read_sav",
    "read_spss",
    "read_stata",
    "read_xpt",
    "remove_all_labels",
    "remove_labels",
    "set_label",
    "set_labels",
    "set_na",
    "tagged_na",
    "TaggedNA",
    "to_attrs",
    "value_label_attribute",
    "variable_label_attribute",
    "write_dta",
    "write_spss",
    "write_stata",
    "write_xpt",
    "zap_label",
    "zap_labels",
    "zap_missing",
    "zap_na_tags",
    "zap_unlabelled",
]

__version__ = "0.1.0"
