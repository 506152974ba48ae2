"""
Recursive Descent Parser for the Pascal subset

Structure:
- Lexer: lazy token stream from source
- Parser: predictive recursive descent, one token of lookahead
- AST: frozen dataclasses from tree.py

The only production needing more than one token of lookahead is
call-vs-assignment: a VARIABLE at statement start is a procedure call when
the very next raw character in the source is '('.
"""

from typing import List, Optional, Tuple, Union

from lark import Token

from .lexer_rd import Lexer
from .token_types import TT, Tok
from .tree import (
    Assign,
    BinOp,
    Block,
    Compound,
    NoOp,
    Node,
    Num,
    Param,
    ProcedureCall,
    ProcedureDecl,
    Program,
    TypeSpec,
    UnaryOp,
    Var,
    VarDecl,
)

# ============================================================================
# Parser
# ============================================================================

class ParseError(Exception):
    """Parse error with position info"""
    def __init__(self, message: str, token: Optional[Tok] = None, expected: Union[TT, str, None] = None):
        self.message = message
        self.token = token
        self.expected = expected
        self.line = token.line if token else None
        self.column = token.column if token else None
        super().__init__(
            f"{message} at line {token.line}, col {token.column}" if token else message
        )


def _describe(tok: Tok) -> str:
    if tok.type == TT.EOF:
        return "EOF"
    return f"{tok.type.name} '{tok.lexeme}'"


def as_lark_token(tok: Tok) -> Token:
    return Token(tok.type.name, tok.lexeme, line=tok.line, column=tok.column)


class Parser:
    """
    Recursive descent parser.

    Grammar:
        program      : PROGRAM variable SEMI block DOT
        block        : (VAR declarations)? procedure* compound_statement
        declarations : (var_list COLON type_spec SEMI)*
        procedure    : PROCEDURE variable (LPAREN params RPAREN)? SEMI block SEMI
        params       : var_list COLON type_spec (SEMI var_list COLON type_spec)*
        compound     : BEGIN statement_list END
        statement    : compound | call | assign | empty
        expr         : term ((ADD | SUB) term)*
        term         : factor ((MUL | DIV | INT_DIV) factor)*
        factor       : (ADD | SUB) factor | INT | VARIABLE | LPAREN expr RPAREN
    """

    ADD_OPS = (TT.ADD, TT.SUB)
    MUL_OPS = (TT.MUL, TT.DIV, TT.INT_DIV)

    def __init__(self, lexer: Lexer):
        self.lexer = lexer
        self.current = lexer.next_token()

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        prev = self.current
        self.current = self.lexer.next_token()
        return prev

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return self.current.type in types

    def match(self, *types: TT) -> bool:
        """Check and consume if current token matches"""
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, token_type: TT, message: Optional[str] = None) -> Tok:
        """Consume token of expected type or raise error"""
        if not self.check(token_type):
            msg = message or f"Expected {token_type.name}, got {_describe(self.current)}"
            raise ParseError(msg, self.current, expected=token_type)
        return self.advance()

    def call_follows(self) -> bool:
        """True when the raw character right after the current token is '('"""
        return self.lexer.peek() == '('

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> Program:
        """Parse entire program"""
        try:
            program = self.parse_program()
        except RecursionError:
            # parenthesised factors recurse through expr/term/factor
            raise ParseError("Expression nesting too deep", self.current) from None
        self.expect(TT.EOF)
        return program

    def parse_program(self) -> Program:
        self.expect(TT.PROGRAM)
        name = self.expect(TT.VARIABLE)
        self.expect(TT.SEMI)
        block = self.parse_block()
        self.expect(TT.DOT)
        return Program(as_lark_token(name), block)

    def parse_block(self) -> Block:
        declarations: Tuple[VarDecl, ...] = ()
        if self.match(TT.VAR):
            declarations = tuple(self.parse_declarations())

        procedures = []
        while self.check(TT.PROCEDURE):
            procedures.append(self.parse_procedure())

        compound = self.parse_compound_statement()
        return Block(declarations, tuple(procedures), compound)

    # ========================================================================
    # Declarations
    # ========================================================================

    def parse_declarations(self) -> List[VarDecl]:
        decls: List[VarDecl] = []

        while self.check(TT.VARIABLE):
            names = self.parse_var_list()
            self.expect(TT.COLON)
            type_spec = self.parse_type_spec()
            self.expect(TT.SEMI)
            decls.extend(VarDecl(var, type_spec) for var in names)

        return decls

    def parse_var_list(self) -> List[Var]:
        names = [Var(as_lark_token(self.expect(TT.VARIABLE)))]

        while self.match(TT.COMMA):
            names.append(Var(as_lark_token(self.expect(TT.VARIABLE))))

        return names

    def parse_type_spec(self) -> TypeSpec:
        if self.check(TT.REAL):
            return TypeSpec(as_lark_token(self.advance()))
        return TypeSpec(as_lark_token(self.expect(TT.INTEGER)))

    def parse_procedure(self) -> ProcedureDecl:
        """PROCEDURE name (LPAREN params RPAREN)? SEMI block SEMI"""
        self.expect(TT.PROCEDURE)
        name = self.expect(TT.VARIABLE)

        params: List[Param] = []
        if self.match(TT.LPAREN):
            params = self.parse_params()
            self.expect(TT.RPAREN)

        self.expect(TT.SEMI)
        block = self.parse_block()
        self.expect(TT.SEMI)
        return ProcedureDecl(as_lark_token(name), tuple(params), block)

    def parse_params(self) -> List[Param]:
        params = self.parse_param_line()

        while self.match(TT.SEMI):
            params.extend(self.parse_param_line())

        return params

    def parse_param_line(self) -> List[Param]:
        names = self.parse_var_list()
        self.expect(TT.COLON)
        type_spec = self.parse_type_spec()
        return [Param(var, type_spec) for var in names]

    # ========================================================================
    # Statements
    # ========================================================================

    def parse_compound_statement(self) -> Compound:
        self.expect(TT.BEGIN)
        statements = self.parse_statement_list()
        self.expect(TT.END)
        return Compound(tuple(statements))

    def parse_statement_list(self) -> List[Node]:
        """
        Collect statements up to END.

        Built in a loop rather than by recursion. An END in statement
        position yields an empty statement; a nested compound statement
        must be followed by SEMI.
        """
        statements: List[Node] = []

        while True:
            if self.check(TT.EOF):
                raise ParseError("Missing END", self.current, expected=TT.END)

            if self.check(TT.END):
                statements.append(NoOp())
                return statements

            if self.check(TT.BEGIN):
                statements.append(self.parse_compound_statement())
                self.expect(TT.SEMI)
                continue

            statements.append(self.parse_statement())

            if not self.match(TT.SEMI):
                return statements

    def parse_statement(self) -> Node:
        if self.check(TT.VARIABLE) and self.call_follows():
            return self.parse_call_statement()
        return self.parse_assign_statement()

    def parse_assign_statement(self) -> Assign:
        target = Var(as_lark_token(self.expect(TT.VARIABLE)))
        op = self.expect(TT.ASSIGN)
        value = self.parse_expr()
        return Assign(target, as_lark_token(op), value)

    def parse_call_statement(self) -> ProcedureCall:
        name = self.expect(TT.VARIABLE)
        self.expect(TT.LPAREN)

        args: List[Node] = []
        if not self.check(TT.RPAREN):
            args.append(self.parse_expr())
            while self.match(TT.COMMA):
                args.append(self.parse_expr())

        self.expect(TT.RPAREN)
        return ProcedureCall(as_lark_token(name), tuple(args))

    # ========================================================================
    # Expressions
    # ========================================================================

    def parse_expr(self) -> Node:
        node = self.parse_term()

        while self.check(*self.ADD_OPS):
            op = self.advance()
            node = BinOp(as_lark_token(op), node, self.parse_term())

        return node

    def parse_term(self) -> Node:
        node = self.parse_factor()

        while self.check(*self.MUL_OPS):
            op = self.advance()
            node = BinOp(as_lark_token(op), node, self.parse_factor())

        return node

    def parse_factor(self) -> Node:
        tok = self.current

        if self.check(*self.ADD_OPS):
            self.advance()
            return UnaryOp(as_lark_token(tok), self.parse_factor())

        if self.check(TT.INT):
            self.advance()
            return Num(as_lark_token(tok), int(tok.lexeme))

        if self.check(TT.VARIABLE):
            self.advance()
            return Var(as_lark_token(tok))

        if self.match(TT.LPAREN):
            node = self.parse_expr()
            self.expect(TT.RPAREN)
            return node

        raise ParseError(f"Expected factor, got {_describe(tok)}", tok, expected="factor")


def parse_source(source: str) -> Program:
    """Convenience function: lex and parse a whole program"""
    return Parser(Lexer(source)).parse()
