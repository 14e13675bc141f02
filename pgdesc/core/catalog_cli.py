import importlib
import logging
import sys
import traceback

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, OperationalError, ProgrammingError, SQLAlchemyError

from pgdesc.core import __version__ as VERSION, BaseCLI, CatalogIntrospector, PgDescError, ReconciliationError, \
    Schema, SQLAlchemyExecutor, Settings, check_schema, create_schema_dump_sql, format_exception, read_config
from pgdesc.core.utils.core_utils import eprint


class CatalogCLIException (Exception):
    """Base exception class for PgDescCatalogCLI.
    """
    def __init__(self, message):
        """Initializes the exception.
        """
        super(CatalogCLIException, self).__init__(message)


class UsageException (CatalogCLIException):
    """Usage exception.
    """
    def __init__(self, message):
        """Initializes the exception.
        """
        super(UsageException, self).__init__(message)


class ResourceException (CatalogCLIException):
    """Database resource exception.
    """
    def __init__(self, message, cause):
        """Initializes the exception.
        """
        super(ResourceException, self).__init__(message)
        self.cause = cause


def load_schema(reference):
    """Import the `Schema` object named by ``package.module:attribute``."""
    module_name, sep, attribute = reference.partition(":")
    if not sep or not module_name or not attribute:
        raise UsageException("expected <module:attribute>, got: %s" % reference)
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise UsageException("unable to import module %s: %s" % (module_name, e))
    schema = getattr(module, attribute, None)
    if not isinstance(schema, Schema):
        raise UsageException("%s is not a Schema" % reference)
    return schema


class PgDescCatalogCLI (BaseCLI):
    """pgdesc Catalog Command-line Interface.
    """
    def __init__(self, description, epilog):
        """Initializes the CLI.
        """
        super(PgDescCatalogCLI, self).__init__(description, epilog, VERSION)

        # initialized after argument parsing
        self.args = None
        self.config = None
        self.url = None
        self.database = None
        self.settings = None
        self._executor = None

        subparsers = self.parser.add_subparsers(title='sub-commands', dest='subcmd')

        # describe parser
        describe_parser = subparsers.add_parser('describe', help="Print the live columns as field annotations.")
        describe_parser.add_argument("tables", metavar="<table>", nargs="*",
                                     help="Table names. Defaults to every table of the search path.")
        describe_parser.set_defaults(func=self.catalog_describe)

        # check parser
        check_parser = subparsers.add_parser('check', help="Check a registered schema against the live catalog.")
        check_parser.add_argument("schema", metavar="<module:attribute>",
                                  help="Import path of a pgdesc Schema object.")
        check_parser.set_defaults(func=self.catalog_check)

        # dump parser
        dump_parser = subparsers.add_parser('dump', help="Print the SQL that creates a registered schema.")
        dump_parser.add_argument("schema", metavar="<module:attribute>",
                                 help="Import path of a pgdesc Schema object.")
        dump_parser.set_defaults(func=self.catalog_dump)

        # version parser
        version_parser = subparsers.add_parser('version', help="Print the server version.")
        version_parser.add_argument("--require-version", metavar="<spec>", nargs="+",
                                    help="Version specifiers the server must satisfy, e.g. '>=13' '<17'.")
        version_parser.set_defaults(func=self.catalog_version)

    def _post_parser_init(self, args):
        """Shared initialization for all sub-commands.
        """
        self.args = args
        self.config = read_config(args.config_file)
        database_config = self.config.get("database", {})
        self.url = args.url or database_config.get("url")
        overrides = {"search_path": args.search_path} if args.search_path else {}
        self.settings = Settings.from_config(self.config, **overrides)
        self.database = database_config.get("database", "postgres")
        if self.url:
            try:
                self.database = make_url(self.url).database or self.database
            except ArgumentError as e:
                raise UsageException("invalid database url: %s" % e)

    @property
    def executor(self):
        if self._executor is None:
            if not self.url:
                raise UsageException("no database url given, use --url or a configuration file")
            self._executor = SQLAlchemyExecutor(self.url)
        return self._executor

    def introspector(self, settings=None):
        return CatalogIntrospector(self.executor, settings or self.settings, database=self.database)

    def catalog_describe(self, args):
        """Implements the describe sub-command.
        """
        try:
            tables = self.introspector().list_tables(args.tables)
        except ProgrammingError as e:
            raise ResourceException("unable to read the catalog of schema %s" % self.settings.search_path, e)
        if args.tables and not tables:
            raise UsageException("no such tables in schema %s: %s" % (self.settings.search_path,
                                                                       ", ".join(args.tables)))
        for table in tables:
            for column in table.columns:
                print(column)

    def catalog_check(self, args):
        """Implements the check sub-command.
        """
        schema = load_schema(args.schema)
        try:
            check_schema(schema, self.introspector(schema.settings))
        except ReconciliationError as e:
            eprint("{prog} {subcmd}: {msg}".format(prog=self.parser.prog, subcmd=args.subcmd, msg=e))
            return 1
        print("Schema %s matches the database." % schema.search_path)

    def catalog_dump(self, args):
        """Implements the dump sub-command.
        """
        print(create_schema_dump_sql(load_schema(args.schema)))

    def catalog_version(self, args):
        """Implements the version sub-command.
        """
        introspector = self.introspector()
        version = introspector.get_version()
        print(version)
        if args.require_version and not introspector.is_server_compatible([args.require_version]):
            eprint("{prog} {subcmd}: server version {version} does not satisfy: {spec}".format(
                prog=self.parser.prog, subcmd=args.subcmd, version=version, spec=" ".join(args.require_version)))
            return 1

    def main(self, argv=None):
        """Main routine of the CLI.
        """
        args = self.parse_cli(argv)

        try:
            if not hasattr(args, 'func'):
                self.parser.print_usage()
                return 1

            self._post_parser_init(args)
            return args.func(args) or 0
        except UsageException as e:
            eprint("{prog} {subcmd}: {msg}".format(prog=self.parser.prog, subcmd=args.subcmd, msg=e))
        except OperationalError as e:
            logging.debug(format_exception(e))
            eprint("{prog}: Connection error occurred".format(prog=self.parser.prog))
        except ResourceException as e:
            logging.debug(format_exception(e.cause))
            eprint("{prog} {subcmd}: {msg}".format(prog=self.parser.prog, subcmd=args.subcmd, msg=e))
        except (PgDescError, SQLAlchemyError) as e:
            logging.debug(format_exception(e))
            eprint("{prog} {subcmd}: {msg}".format(prog=self.parser.prog, subcmd=args.subcmd, msg=e))
        except RuntimeError as e:
            logging.warning(format_exception(e))
            eprint('Unexpected runtime error occurred')
        except Exception:
            eprint('Unexpected error occurred')
            traceback.print_exc()
        finally:
            if self._executor is not None:
                self._executor.dispose()
        return 1


def main():
    DESC = "pgdesc Catalog Utility Command-Line Interface"
    INFO = "Describe, check and dump PostgreSQL schemas declared with pgdesc."
    return PgDescCatalogCLI(DESC, INFO).main()


if __name__ == '__main__':
    sys.exit(main())
