"""
Excel export of the monthly financial report
Summary, Expenses, EMIs and Savings sheets
"""
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill

from billbox.services.categories import category_name

MONEY_FORMAT = '#,##0.00'
HEADER_FILL = PatternFill(start_color='CCCCCC', end_color='CCCCCC', fill_type='solid')


def generate_report_workbook(report, expenses, emis, savings, filename='billbox_report.xlsx', categories=None):
    """
    Build the monthly report workbook.

    Args:
        report: output of reports.generate_monthly_report
        expenses: Expense rows for the Expenses sheet
        emis: EMI rows
        savings: Savings rows
        filename: stored as the workbook title
        categories: category dicts used for display names

    Returns:
        The .xlsx file contents as bytes
    """
    wb = Workbook()
    ws = wb.active
    ws.title = 'Summary'
    wb.properties.title = filename

    write_summary_sheet(ws, report)
    write_expenses_sheet(wb.create_sheet('Expenses'), expenses, categories)
    write_emis_sheet(wb.create_sheet('EMIs'), emis)
    write_savings_sheet(wb.create_sheet('Savings'), savings)

    output = BytesIO()
    wb.save(output)
    return output.getvalue()


def write_header(ws, row, headers):
    """Bold, shaded column headers"""
    for col, header in enumerate(headers, start=1):
        cell = ws.cell(row=row, column=col)
        cell.value = header
        cell.font = Font(bold=True)
        cell.fill = HEADER_FILL
    return row + 1


def write_title(ws, row, title):
    ws.cell(row=row, column=1).value = title
    ws.cell(row=row, column=1).font = Font(bold=True, size=14)
    return row + 1


def write_money(ws, row, col, value):
    cell = ws.cell(row=row, column=col)
    cell.value = float(value or 0)
    cell.number_format = MONEY_FORMAT
    return cell


def write_summary_sheet(ws, report):
    row = write_title(ws, 1, f"Monthly Financial Report - {report['month']} {report['year']}")
    row += 1

    # Totals
    row = write_header(ws, row, ['Item', 'Amount'])
    lines = [
        ('Income', report['income']['total']),
        ('Expenses', report['expenses']['total']),
        ('Monthly EMI', report['emis']['total_monthly']),
        ('Remaining EMI', report['emis']['total_remaining']),
        ('Total Saved', report['savings']['total_saved']),
        ('Monthly Contribution', report['savings']['monthly_contribution']),
        ('Available Balance', report['forecast']['available_balance']),
        ('Next Month Projection', report['forecast']['next_month_projection']),
    ]
    for label, value in lines:
        ws.cell(row=row, column=1).value = label
        write_money(ws, row, 2, value)
        row += 1
    row += 1

    # Ratios and health
    row = write_header(ws, row, ['Indicator', 'Value'])
    ws.cell(row=row, column=1).value = 'Savings Rate (%)'
    ws.cell(row=row, column=2).value = round(report['forecast']['savings_rate'], 1)
    row += 1
    ws.cell(row=row, column=1).value = 'EMI to Income Ratio (%)'
    ws.cell(row=row, column=2).value = round(report['forecast']['emi_to_income_ratio'], 1)
    row += 1
    ws.cell(row=row, column=1).value = 'Financial Health'
    ws.cell(row=row, column=2).value = report['summary']['financial_health'].upper()
    row += 2

    # Expenses by category
    row = write_header(ws, row, ['Category', 'Amount'])
    for name, amount in sorted(report['expenses']['by_category'].items(), key=lambda x: x[1], reverse=True):
        ws.cell(row=row, column=1).value = name
        write_money(ws, row, 2, amount)
        row += 1
    row += 1

    if report['summary']['recommendations']:
        row = write_header(ws, row, ['Recommendations'])
        for rec in report['summary']['recommendations']:
            ws.cell(row=row, column=1).value = rec
            row += 1

    ws.column_dimensions['A'].width = 30
    ws.column_dimensions['B'].width = 18
    return row


def write_expenses_sheet(ws, expenses, categories=None):
    row = write_header(ws, 1, ['Date', 'Description', 'Category', 'Amount', 'Recurring', 'Next Due'])
    for e in sorted(expenses, key=lambda e: e.date):
        ws.cell(row=row, column=1).value = e.date
        ws.cell(row=row, column=1).number_format = 'YYYY-MM-DD'
        ws.cell(row=row, column=2).value = e.description
        ws.cell(row=row, column=3).value = category_name(e.category, categories)
        write_money(ws, row, 4, e.amount)
        ws.cell(row=row, column=5).value = 'Yes' if e.is_recurring else 'No'
        if e.next_due_date:
            ws.cell(row=row, column=6).value = e.next_due_date
            ws.cell(row=row, column=6).number_format = 'YYYY-MM-DD'
        row += 1

    ws.cell(row=row, column=1).value = 'TOTAL'
    ws.cell(row=row, column=1).font = Font(bold=True)
    write_money(ws, row, 4, sum(float(e.amount) for e in expenses)).font = Font(bold=True)
    ws.column_dimensions['B'].width = 40
    return row


def write_emis_sheet(ws, emis):
    row = write_header(ws, 1, ['Name', 'Category', 'Monthly Amount', 'Tenure', 'Start', 'End', 'Total', 'Active'])
    for e in emis:
        ws.cell(row=row, column=1).value = e.name
        ws.cell(row=row, column=2).value = e.category
        write_money(ws, row, 3, e.monthly_amount)
        ws.cell(row=row, column=4).value = e.tenure
        ws.cell(row=row, column=5).value = e.start_month
        ws.cell(row=row, column=6).value = e.end_month
        write_money(ws, row, 7, e.total_amount)
        ws.cell(row=row, column=8).value = 'Yes' if e.is_active else 'No'
        row += 1
    ws.column_dimensions['A'].width = 30
    return row


def write_savings_sheet(ws, savings):
    row = write_header(ws, 1, ['Type', 'Name', 'Amount', 'Start', 'Maturity Date', 'Expected Value', 'Status'])
    for s in savings:
        expected = s.expected_maturity_amount or s.expected_total or s.expected_future_value
        ws.cell(row=row, column=1).value = s.type.upper()
        ws.cell(row=row, column=2).value = s.name
        write_money(ws, row, 3, s.amount)
        ws.cell(row=row, column=4).value = s.start_date
        ws.cell(row=row, column=4).number_format = 'YYYY-MM-DD'
        if s.maturity_date:
            ws.cell(row=row, column=5).value = s.maturity_date
            ws.cell(row=row, column=5).number_format = 'YYYY-MM-DD'
        if expected:
            write_money(ws, row, 6, expected)
        ws.cell(row=row, column=7).value = 'Matured' if s.is_matured else ('Active' if s.is_active else 'Closed')
        row += 1
    ws.column_dimensions['B'].width = 30
    return row
