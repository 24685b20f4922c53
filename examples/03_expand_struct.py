"""
Example 03: Struct Expansion

This example demonstrates flattening a struct and everything it references
into standalone Go definitions.
"""

from struct_copy import AliasDescriptor, StructCopier, StructDescriptor, StructIndex


def main():
    index = StructIndex(
        structs=[
            StructDescriptor.from_go(
                "Order",
                'struct { ID OrderID `json:"id" db:"id"`; Customer Customer; '
                "Lines []*Line; Meta struct { Source string } }",
                package="shop",
                import_path="github.com/acme/shop",
            ),
            StructDescriptor.from_go(
                "Customer",
                "struct { Name string; Status Status }",
                package="shop",
                import_path="github.com/acme/shop",
            ),
            StructDescriptor.from_go(
                "Line",
                "struct { SKU string; Quantity int }",
                package="shop",
                import_path="github.com/acme/shop",
            ),
        ],
        aliases=[
            AliasDescriptor(name="OrderID", package="shop", underlying="int64"),
            AliasDescriptor(name="Status", package="shop", underlying="string"),
        ],
    )
    copier = StructCopier(index)

    print("=== Expanded Order ===\n")
    result = copier.expand("Order", "shop")
    print(result.content if result.success else result.message)


if __name__ == "__main__":
    main()
