"""QueryBuilder -- tree-mutation engine for nested boolean query builders."""
