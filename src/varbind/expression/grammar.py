"""Restricted expression grammar

Two entry points share the same expression rules:

- `expression`: a single side effect free expression (prop bindings,
  variable values). There are no statements, so `{}` is always an object
  literal, never a block.
- `effects`: action bodies, a list of assignments to bare identifiers and
  calls to whitelisted effect names.
"""

GRAMMAR = r"""
expression: expr
effects: (effect | ";")*

effect: IDENT ASSIGN_OP expr                       -> assignment
      | IDENT "(" (expr ("," expr)* ","?)? ")"      -> effect_call

?expr: conditional

?conditional: nullish
            | nullish "?" expr ":" expr             -> conditional

?nullish: logic_or
        | nullish NULLISH logic_or                  -> binary

?logic_or: logic_and
         | logic_or OR logic_and                    -> binary

?logic_and: equality
          | logic_and AND equality                  -> binary

?equality: relational
         | equality EQ_OP relational                -> binary

?relational: additive
           | relational REL_OP additive             -> binary

?additive: multiplicative
         | additive ADD_OP multiplicative           -> binary

?multiplicative: unary
               | multiplicative MUL_OP unary        -> binary

?unary: postfix
      | NOT unary                                   -> unary
      | ADD_OP unary                                -> unary
      | TYPEOF unary                                -> unary

?postfix: atom
        | postfix "." member_name                   -> member
        | postfix OPTIONAL_DOT member_name          -> optional_member
        | postfix "[" expr "]"                      -> index
        | postfix OPTIONAL_DOT "[" expr "]"         -> optional_index

?atom: NUMBER                                       -> number
     | STRING                                       -> string
     | TRUE                                         -> true
     | FALSE                                        -> false
     | NULL                                         -> null
     | IDENT                                        -> identifier
     | "(" expr ")"
     | "[" (expr ("," expr)* ","?)? "]"             -> array
     | "{" (pair ("," pair)* ","?)? "}"             -> object

pair: property_key ":" expr
    | "[" expr "]" ":" expr                         -> computed_pair
    | IDENT                                         -> shorthand_pair

property_key: IDENT | STRING | NUMBER | TRUE | FALSE | NULL | TYPEOF
member_name: IDENT | TRUE | FALSE | NULL | TYPEOF

TRUE: "true"
FALSE: "false"
NULL: "null"
TYPEOF: "typeof"

ASSIGN_OP: "??=" | "+=" | "-=" | "*=" | "/=" | "%=" | "="
NULLISH: "??"
OPTIONAL_DOT: "?."
OR: "||"
AND: "&&"
EQ_OP: "===" | "!==" | "==" | "!="
REL_OP: "<=" | ">=" | "<" | ">"
ADD_OP: "+" | "-"
MUL_OP: "*" | "/" | "%"
NOT: "!"

IDENT: /[A-Za-z_$][A-Za-z0-9_$]*/
NUMBER: /(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?/
STRING: /"(?:[^"\\\n]|\\(?:.|\n))*"/ | /'(?:[^'\\\n]|\\(?:.|\n))*'/

LINE_COMMENT: /\/\/[^\n]*/
BLOCK_COMMENT: /\/\*(?:.|\n)*?\*\//

%import common.WS
%ignore WS
%ignore LINE_COMMENT
%ignore BLOCK_COMMENT
"""

# Words that can never be bare identifiers, mostly so that statement and
# function syntax fails with a clear message.
RESERVED_WORDS = frozenset(
    {
        "await",
        "break",
        "case",
        "catch",
        "class",
        "const",
        "continue",
        "debugger",
        "default",
        "delete",
        "do",
        "else",
        "enum",
        "export",
        "extends",
        "finally",
        "for",
        "function",
        "if",
        "import",
        "in",
        "instanceof",
        "let",
        "new",
        "return",
        "super",
        "switch",
        "this",
        "throw",
        "try",
        "var",
        "void",
        "while",
        "with",
        "yield",
    }
)
